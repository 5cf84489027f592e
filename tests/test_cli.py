"""
Tests for CLI commands — render, check, defaults, and global options.
"""

import json

import yaml
from click.testing import CliRunner

from src.main import cli


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Redpanda" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestRenderCommand:
    """Tests for the render command."""

    def test_defaults(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["render"])
        assert result.exit_code == 0
        docs = list(yaml.safe_load_all(result.output))
        assert [d["kind"] for d in docs] == ["ConfigMap", "Certificate", "Certificate", "StatefulSet"]

    def test_values_and_set(self, write_values):
        path = write_values("""
            tls:
              enabled: false
        """)
        runner = CliRunner()
        result = runner.invoke(cli, ["render", "-f", str(path), "--set", "statefulset.replicas=1"])
        assert result.exit_code == 0
        docs = list(yaml.safe_load_all(result.output))
        assert [d["kind"] for d in docs] == ["ConfigMap", "StatefulSet"]
        assert docs[-1]["spec"]["replicas"] == 1

    def test_fixture_file(self, fixtures_dir):
        runner = CliRunner()
        values = fixtures_dir / "ci" / "02-external-truststores.yaml"
        result = runner.invoke(cli, ["render", "--json", "-f", str(values)])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["truststores"]["kafka/public"] == "/etc/truststores/secrets/kafka-secret-client-ca.crt"
        assert data["mounts"] == [
            "rp-default-cert",
            "truststore-configmap-my-ca-bundle-ca-crt",
            "truststore-secret-kafka-secret-client-ca-crt",
        ]

    def test_json(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["render", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["version"] == "v24.1.1"
        assert data["truststores"]["kafka/internal"] == "/etc/tls/certs/default/ca.crt"
        assert data["certificates"] == ["default", "external"]

    def test_gate_failure(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["render", "--set", "image.tag=v23.1.1"])
        assert result.exit_code == 1
        assert "does not support TLS on the RPC port" in result.output

    def test_gate_failure_json(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["render", "--json", "--set", "image.tag=v22.1.0"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["ok"] is False
        assert "no longer supported" in data["errors"][0]

    def test_missing_values_file(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(cli, ["render", "-f", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_valid(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 0
        assert "Values are valid" in result.output
        assert "v24.1.1" in result.output
        assert "kafka/internal" in result.output

    def test_quiet(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--quiet", "check"])
        assert result.exit_code == 0
        assert "Version:" not in result.output

    def test_invalid(self, write_values):
        path = write_values("""
            listeners:
              kafka:
                tls:
                  cert: nope
        """)
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "-f", str(path)])
        assert result.exit_code == 1
        assert "Values are invalid" in result.output
        assert "listeners.kafka.tls.cert" in result.output

    def test_json_has_no_manifests(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["check", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["manifests"] == []


class TestDefaultsCommand:
    def test_prints_chart_defaults(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["defaults"])
        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["listeners"]["kafka"]["port"] == 9093
        assert data["tls"]["certs"]["default"]["caEnabled"] is True
