import json
import os
from unittest.mock import Mock, patch

import pytest
import requests

from readme_sync.config import Config
from readme_sync.core.client import ReadmeClient
from readme_sync.errors import DocNotFound, TransportError


def _response(status_code=200, body=None, text=None):
    """Create a mock requests.Response with a JSON body."""
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = "Reason"
    if body is not None:
        response.content = json.dumps(body).encode()
        response.json.return_value = body
        response.text = json.dumps(body)
    else:
        response.content = (text or "").encode()
        response.text = text or ""
        response.json.side_effect = ValueError("No JSON")
    return response


# TestReadmeClient tests
def test_api_url_strips_trailing_slash():
    """Test that the API root never ends with a slash."""
    config = Config(
        api_key="key", docs_version="1.0", api_url="https://dash.readme.example/api/v1/"
    )
    client = ReadmeClient(config)
    assert client.api_url == "https://dash.readme.example/api/v1"


def test_session_auth_and_headers(mock_config):
    """Test that the session uses the API key as basic-auth user and sends the version."""
    client = ReadmeClient(mock_config)
    assert client.session.auth == ("rdme_test_key", "")
    assert client.session.headers["x-readme-version"] == "1.0"
    assert client.session.headers["Accept"] == "application/json"


def test_session_is_reused_within_thread(mock_config):
    client = ReadmeClient(mock_config)
    assert client.session is client.session


@patch("readme_sync.core.client.requests.Session.request")
def test_get_doc_success(mock_request, mock_config):
    """Test get_doc returns the decoded payload."""
    mock_request.return_value = _response(body={"slug": "intro", "title": "Intro"})

    client = ReadmeClient(mock_config)
    result = client.get_doc("intro")

    assert result == {"slug": "intro", "title": "Intro"}
    method, url = mock_request.call_args.args
    assert method == "GET"
    assert url == "https://dash.readme.example/api/v1/docs/intro"


@patch("readme_sync.core.client.requests.Session.request")
def test_get_doc_not_found(mock_request, mock_config):
    """Test a 404 on a doc lookup raises DocNotFound."""
    mock_request.return_value = _response(404, body={"error": "DOC_NOTFOUND"})

    client = ReadmeClient(mock_config)
    with pytest.raises(DocNotFound) as exc_info:
        client.get_doc("missing")
    assert exc_info.value.slug == "missing"


@patch("readme_sync.core.client.requests.Session.request")
def test_category_not_found_is_transport_error(mock_request, mock_config):
    """Test a 404 outside doc lookups is a plain transport failure."""
    mock_request.return_value = _response(404, body={"message": "No category"})

    client = ReadmeClient(mock_config)
    with pytest.raises(TransportError) as exc_info:
        client.get_category("nope")
    assert exc_info.value.status_code == 404
    assert "No category" in str(exc_info.value)


@patch("readme_sync.core.client.requests.Session.request")
def test_server_error_uses_response_text(mock_request, mock_config):
    """Test non-JSON error bodies end up in the error message."""
    mock_request.return_value = _response(502, text="Bad gateway")

    client = ReadmeClient(mock_config)
    with pytest.raises(TransportError, match="502: Bad gateway"):
        client.update_doc("intro", {"title": "Intro"})


@patch("readme_sync.core.client.requests.Session.request")
def test_connection_error(mock_request, mock_config):
    """Test connection failures become TransportError."""
    mock_request.side_effect = requests.ConnectionError("refused")

    client = ReadmeClient(mock_config)
    with pytest.raises(TransportError, match="refused"):
        client.get_doc("intro")


@patch("readme_sync.core.client.requests.Session.request")
def test_create_doc_sends_json(mock_request, mock_config):
    """Test create_doc posts the payload as JSON."""
    mock_request.return_value = _response(201, body={"_id": "1", "slug": "intro"})

    client = ReadmeClient(mock_config)
    result = client.create_doc({"slug": "intro", "title": "Intro"})

    assert result["_id"] == "1"
    assert mock_request.call_args.args[0] == "POST"
    assert mock_request.call_args.kwargs["json"] == {"slug": "intro", "title": "Intro"}
    assert mock_request.call_args.kwargs["timeout"] == (10, 60)


@patch("readme_sync.core.client.requests.Session.request")
def test_delete_doc_empty_response(mock_request, mock_config):
    """Test 204 responses decode to None."""
    mock_request.return_value = _response(204, text="")

    client = ReadmeClient(mock_config)
    assert client.delete_doc("intro") is None
    assert mock_request.call_args.args[0] == "DELETE"


@patch("readme_sync.core.client.requests.Session.request")
def test_get_category_docs(mock_request, mock_config):
    """Test category listing returns the doc forest."""
    tree = [{"slug": "a", "title": "A", "children": [{"slug": "b", "children": []}]}]
    mock_request.return_value = _response(body=tree)

    client = ReadmeClient(mock_config)

    assert client.get_category_docs("guides") == tree
    assert mock_request.call_args.args[1].endswith("/categories/guides/docs")


@pytest.mark.live
def test_live_get_category():
    """Fetch a real category; needs README_API_KEY, README_DOCS_VERSION, README_TEST_CATEGORY."""
    config = Config(
        api_key=os.environ["README_API_KEY"],
        docs_version=os.environ["README_DOCS_VERSION"],
    )
    client = ReadmeClient(config)
    category = client.get_category(os.environ["README_TEST_CATEGORY"])
    assert category["slug"] == os.environ["README_TEST_CATEGORY"]
