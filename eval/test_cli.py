"""Tests for the click CLI."""
import json

import pytest
from click.testing import CliRunner
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from cloudstats.cli import cli
from cloudstats.config import SENT_ID_KEY
from cloudstats.store.database import Database
from cloudstats.telemetry import transport as transport_mod


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("CLOUDSTATS_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("CLOUDSTATS_TELEMETRY", raising=False)
    monkeypatch.delenv("CLOUDSTATS_PUBLIC_KEY", raising=False)
    monkeypatch.delenv("CLOUDSTATS_SERVER_URL", raising=False)
    monkeypatch.delenv("CLOUDSTATS_BUILD_FOR", raising=False)
    return tmp_path / "home"


@pytest.fixture
def public_key_file(tmp_path):
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    path = tmp_path / "collector.pem"
    path.write_bytes(key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ))
    return str(path)


@pytest.fixture
def infra_file(tmp_path):
    path = tmp_path / "infra.json"
    path.write_text(json.dumps({
        "nodes": [
            {"id": "vpc-1", "type": "vpc"},
            {"id": "subnet-1", "type": "subnet"},
            {"id": "i-1", "type": "instance", "properties": {"Type": "t2.micro"}},
        ],
        "links": [
            {"source": "vpc-1", "target": "subnet-1"},
            {"source": "subnet-1", "target": "i-1"},
        ],
    }))
    return str(path)


class _FakeResponse:
    status_code = 200
    content = b'{"Version": "99.0.0", "URL": "https://cloudstats.dev"}'

    def iter_content(self, chunk_size=1):
        yield self.content

    def close(self):
        pass


def test_record_then_show_json(home, infra_file):
    runner = CliRunner()
    assert runner.invoke(cli, ["record", "list", "vpcs"]).exit_code == 0
    assert runner.invoke(cli, ["record", "list", "vpcs"]).exit_code == 0

    result = runner.invoke(cli, ["show", "--json", "--infra", infra_file])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["Commands"][0]["Command"] == "list vpcs"
    assert data["Commands"][0]["Hits"] == 2
    assert data["InfraMetrics"]["NbVpcs"] == 1
    assert data["InstancesStats"][0]["Name"] == "t2.micro"


def test_show_rich_output(home):
    runner = CliRunner()
    runner.invoke(cli, ["record", "sync"])
    result = runner.invoke(cli, ["show"])
    assert result.exit_code == 0
    assert "sync" in result.output


def test_send_commits_and_prints_advisory(home, public_key_file, monkeypatch):
    posted = []
    monkeypatch.setattr(transport_mod.requests, "post",
                        lambda url, **kw: posted.append(url) or _FakeResponse())
    runner = CliRunner()
    runner.invoke(cli, ["record", "list", "vpcs"])

    result = runner.invoke(cli, ["send", "--public-key", public_key_file])
    assert result.exit_code == 0, result.output
    assert "Statistics sent." in result.output
    assert "New version 99.0.0 available" in result.output
    assert len(posted) == 1
    assert Database(str(home)).get_int_value(SENT_ID_KEY) == 1

    # Within 24h the gate holds the next send back
    result = runner.invoke(cli, ["send", "--public-key", public_key_file])
    assert result.exit_code == 0
    assert "less than 24h ago" in result.output
    assert len(posted) == 1


def test_send_failure_exits_nonzero(home, public_key_file, monkeypatch):
    def _refuse(url, **kw):
        raise transport_mod.requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(transport_mod.requests, "post", _refuse)
    runner = CliRunner()
    runner.invoke(cli, ["record", "list", "vpcs"])
    result = runner.invoke(cli, ["send", "--public-key", public_key_file])
    assert result.exit_code == 1
    assert "Failed to send statistics" in result.output
    assert Database(str(home)).get_int_value(SENT_ID_KEY) == 0


def test_send_without_key_fails(home):
    result = CliRunner().invoke(cli, ["send"])
    assert result.exit_code == 1
    assert "No collector public key" in result.output


def test_telemetry_off_skips_send(home, public_key_file, monkeypatch):
    monkeypatch.setattr(transport_mod.requests, "post",
                        lambda url, **kw: pytest.fail("must not POST"))
    runner = CliRunner()
    assert runner.invoke(cli, ["config", "set", "telemetry", "off"]).exit_code == 0
    result = runner.invoke(cli, ["send", "--public-key", public_key_file])
    assert result.exit_code == 0
    assert "Telemetry is disabled." in result.output
    assert "telemetry: off" in runner.invoke(cli, ["config", "get", "telemetry"]).output


def test_config_region_and_unknown_key(home):
    runner = CliRunner()
    assert runner.invoke(cli, ["config", "set", "region", "ap-south-1"]).exit_code == 0
    assert "region: ap-south-1" in runner.invoke(cli, ["config", "get", "region"]).output
    assert runner.invoke(cli, ["config", "set", "colour", "blue"]).exit_code == 1


def test_config_get_region_with_corrupt_store(home):
    home.mkdir(parents=True, exist_ok=True)
    (home / "values.json").write_text("{not json", encoding="utf-8")
    result = CliRunner().invoke(cli, ["config", "get", "region"])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Failed to read region" in result.output


def test_config_set_reports_unwritable_settings(home, monkeypatch):
    def _readonly(path, settings):
        raise PermissionError(13, "Permission denied", path)

    monkeypatch.setattr("cloudstats.config.save_settings", _readonly)
    result = CliRunner().invoke(cli, ["config", "set", "server_url", "https://c.example"])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Failed to save config" in result.output
