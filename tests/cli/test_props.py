"""Tests for riak props get / set."""

import json

import yaml

from riakhttp.transport import Response, find_header
from tests.cli.conftest import invoke

PROPS = Response(
    status=200,
    headers=[("Content-Type", "application/json")],
    body=b'{"props":{"name":"photos","n_val":3,"allow_mult":false,"big_vclock":50}}',
)


def test_props_get_json(runner, transport):
    transport.on("GET", "/buckets/photos/props", PROPS)
    result = invoke(runner, ["props", "get", "photos"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["n_val"] == 3
    assert data["allow_mult"] is False
    assert data["big_vclock"] == 50


def test_props_get_yaml(runner, transport):
    transport.on("GET", "/buckets/photos/props", PROPS)
    result = invoke(runner, ["props", "get", "photos", "--format", "yaml"])
    assert result.exit_code == 0
    assert yaml.safe_load(result.output)["name"] == "photos"


def test_props_get_unknown_format(runner, transport):
    result = invoke(runner, ["props", "get", "photos", "--format", "xml"])
    assert result.exit_code == 2


def test_props_get_server_error(runner, transport):
    transport.on("GET", "/buckets/photos/props", Response(status=503))
    result = invoke(runner, ["props", "get", "photos"])
    assert result.exit_code == 3


def test_props_set(runner, transport):
    transport.on("PUT", "/buckets/photos/props", Response(status=204))
    result = invoke(runner, ["props", "set", "photos", "allow_mult=true", "n_val=3"])
    assert result.exit_code == 0
    assert "Updated 2 properties of 'photos'" in result.output
    request = transport.sent("PUT")[0]
    assert find_header(request.headers, "Content-Type") == "application/json"
    assert json.loads(request.body) == {"props": {"allow_mult": True, "n_val": 3}}


def test_props_set_text_value(runner, transport):
    transport.on("PUT", "/buckets/photos/props", Response(status=204))
    result = invoke(runner, ["props", "set", "photos", "backend=leveldb"])
    assert result.exit_code == 0
    assert "Updated 1 property" in result.output
    assert json.loads(transport.sent("PUT")[0].body) == {"props": {"backend": "leveldb"}}


def test_props_set_invalid_value_is_usage_error(runner, transport):
    result = invoke(runner, ["props", "set", "photos", "n_val=abc"])
    assert result.exit_code == 2
    assert "n_val" in result.output
    assert transport.requests == []


def test_props_set_unsupported_media_type(runner, transport):
    transport.on("PUT", "/buckets/photos/props", Response(status=415))
    result = invoke(runner, ["props", "set", "photos", "n_val=3"])
    assert result.exit_code == 3
    assert "application/json" in result.output
