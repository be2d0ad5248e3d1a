import json

import pytest
import yaml

from conftest import cluster
from photonctl.modules.models import VM
from photonctl.utils import redact_sensitive_data
from photonctl.utils.output import format_object


def test_redacts_ssh_key_and_tokens():
    body = {
        "name": "demo",
        "extendedProperties": {"dns": "10.0.0.2", "ssh_key": "ssh-rsa AAAA"},
        "items": [{"Authorization": "Bearer abc"}],
    }

    redacted = redact_sensitive_data(body)

    assert redacted["extendedProperties"] == {"dns": "10.0.0.2", "ssh_key": "[REDACTED]"}
    assert redacted["items"][0]["Authorization"] == "[REDACTED]"
    assert body["extendedProperties"]["ssh_key"] == "ssh-rsa AAAA"


def test_format_object_json_and_yaml():
    payload = {"cluster": cluster("RESIZING"), "masters": [VM(id="vm1", tags=["cluster:c1:master"])]}

    as_json = json.loads(format_object(payload, "json"))
    as_yaml = yaml.safe_load(format_object(payload, "yaml"))

    assert as_json == as_yaml
    assert as_json["cluster"]["state"] == "RESIZING"
    assert as_json["masters"][0]["id"] == "vm1"


def test_format_object_rejects_unknown_format():
    with pytest.raises(ValueError):
        format_object({}, "xml")
