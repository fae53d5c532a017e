"""Tests for the OpenAPI / Swagger importer."""

import json

import pytest

from restload.errors import MalformedDocument
from restload.importers import openapi
from tests.helpers import OPENAPI_YAML, openapi_dict


class TestOpenAPI3:
    @pytest.fixture
    def root(self):
        tree = openapi.parse(OPENAPI_YAML, "ws-1")
        assert len(tree) == 1
        return tree[0]

    def test_root_named_after_title(self, root):
        assert root["type"] == "request_group"
        assert root["name"] == "Inventory API"

    def test_operations_grouped_by_first_tag(self, root):
        items, health = root["children"]
        assert items["type"] == "request_group"
        assert items["name"] == "items"
        assert [child["name"] for child in items["children"]] == ["List items", "createItem"]
        assert health["type"] == "request"
        assert health["name"] == "Health check"

    def test_server_variables_substituted(self, root):
        list_items = root["children"][0]["children"][0]
        assert list_items["url"] == "https://prod.inventory.example.com/v1/items"
        assert list_items["method"] == "GET"

    def test_query_and_header_parameters(self, root):
        list_items = root["children"][0]["children"][0]
        assert list_items["parameters"] == [{"name": "limit", "value": "10"}]
        assert list_items["headers"] == [{"name": "X-Request-Id", "value": "abc"}]
        assert list_items["body"] == {"mimeType": "No Body"}

    def test_request_body_example_through_ref(self, root):
        create = root["children"][0]["children"][1]
        assert create["method"] == "POST"
        assert create["body"]["mimeType"] == "application/json"
        assert json.loads(create["body"]["text"]) == {"name": "widget", "qty": 3}
        assert {"name": "Content-Type", "value": "application/json"} in create["headers"]


class TestSwagger2:
    @pytest.fixture
    def root(self):
        # JSON values are accepted as well as text
        return openapi.parse(openapi_dict(), "ws-1")[0]

    def test_base_url_and_path_template(self, root):
        get_pet, update_pet = root["children"]
        assert get_pet["name"] == "getPet"
        assert get_pet["url"] == "http://legacy.example.com/api/pets/{petId}"
        assert update_pet["method"] == "PUT"

    def test_body_parameter(self, root):
        update_pet = root["children"][1]
        assert update_pet["name"] == "Update pet"
        assert update_pet["body"]["mimeType"] == "application/json"
        assert json.loads(update_pet["body"]["text"]) == {"name": "Rex"}

    def test_form_data_parameters(self):
        doc = {
            "swagger": "2.0",
            "info": {"title": "Upload"},
            "paths": {
                "/upload": {
                    "post": {
                        "consumes": ["multipart/form-data"],
                        "parameters": [
                            {"name": "note", "in": "formData", "type": "string", "default": "hi"},
                            {"name": "file", "in": "formData", "type": "file"},
                        ],
                    }
                }
            },
        }
        request = openapi.parse(doc, "ws-1")[0]["children"][0]
        assert request["url"] == "/upload"
        assert request["body"] == {
            "mimeType": "multipart/form-data",
            "params": [
                {"name": "note", "value": "hi"},
                {"name": "file", "value": "", "type": "file"},
            ],
        }


@pytest.mark.parametrize(
    "text",
    [
        "openapi: [unclosed",
        "- just\n- a list\n",
        "info:\n  title: no version key\n",
        "openapi: 3.0.0\npaths: [1, 2]\n",
    ],
)
def test_invalid_documents_raise(text):
    with pytest.raises(MalformedDocument):
        openapi.parse(text, "ws-1")


def test_looks_like():
    assert openapi.looks_like(OPENAPI_YAML)
    assert openapi.looks_like(openapi_dict())
    assert not openapi.looks_like({"info": {}})
