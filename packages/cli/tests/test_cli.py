"""CLI command tests using Typer's CliRunner."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from costwright_cli import __version__
from costwright_cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


def _product(vendor: str, service: str, family: str, attributes: dict, prices: list) -> dict:
    return {
        "vendorName": vendor,
        "service": service,
        "region": "us-east-1",
        "productFamily": family,
        "attributes": [{"key": k, "value": v} for k, v in attributes.items()],
        "prices": prices,
    }


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """aws.json with one VM and two database SKUs; no Azure or GCP file."""
    directory = tmp_path / "catalog"
    directory.mkdir()
    products = [
        _product(
            "AWS",
            "AmazonEC2",
            "Compute Instance",
            {"instanceType": "t2.medium", "vcpu": "2", "memory": "4 GB"},
            [{"USD": "0.05", "unit": "Hrs", "purchaseOption": "on_demand"}],
        ),
        _product(
            "AWS",
            "AmazonRDS",
            "Database Instance",
            {"instanceType": "db.t3.micro", "vcpu": "1", "memory": "2 GB", "databaseEngine": "MySQL"},
            [{"USD": "0.034", "unit": "Hrs", "purchaseOption": "on_demand"}],
        ),
    ]
    (directory / "aws.json").write_text(json.dumps({"data": {"products": products}}))
    return directory


class TestGlobalOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"costwright {__version__}" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("compare", "normalize", "templates", "catalog"):
            assert command in result.output


class TestCompare:
    def test_json(self, catalog_dir):
        result = runner.invoke(
            app, ["--json", "compare", "VirtualMachines", "--tier", "Small", "--catalog-dir", str(catalog_dir)]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["usage"] == "Small"
        assert data["resources"] == ["VirtualMachines"]
        assert [r["cloud"] for r in data["results"]] == ["aws", "azure", "gcp"]
        assert data["results"][0]["total_monthly_price"] == "36.50"
        assert data["results"][1]["breakdown"][0]["resource_details"] is None

    def test_table_has_total_row(self, catalog_dir):
        result = runner.invoke(app, ["compare", "VirtualMachines", "Relational", "--catalog-dir", str(catalog_dir)])
        assert result.exit_code == 0, result.output
        assert "TOTAL" in result.output
        assert "$36.50" in result.output
        assert "$24.82" in result.output
        assert "$61.32" in result.output
        assert "no match" in result.output

    def test_template_supplies_kinds(self, catalog_dir):
        result = runner.invoke(
            app, ["--json", "compare", "--template", "wordpress", "--catalog-dir", str(catalog_dir)]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["resources"] == ["VirtualMachines", "Relational", "LoadBalancer"]
        aws = data["results"][0]
        assert [e["cost"] for e in aws["breakdown"]] == ["36.50", "24.820", "16.51"]

    def test_all_tiers(self, catalog_dir):
        result = runner.invoke(
            app, ["--json", "compare", "VirtualMachines", "--all-tiers", "--catalog-dir", str(catalog_dir)]
        )
        assert result.exit_code == 0, result.output
        comparisons = json.loads(result.output)["comparisons"]
        assert [c["usage"] for c in comparisons] == ["Small", "Medium", "Large", "ExtraLarge"]

    def test_empty_request(self, catalog_dir):
        result = runner.invoke(app, ["compare", "--catalog-dir", str(catalog_dir)])
        assert result.exit_code == 0
        assert "No resource kinds requested" in result.output

    def test_invalid_tier(self, catalog_dir):
        result = runner.invoke(
            app, ["--json", "compare", "VirtualMachines", "--tier", "Gigantic", "--catalog-dir", str(catalog_dir)]
        )
        assert result.exit_code == 1
        assert "Invalid usage tier: 'Gigantic'" in json.loads(result.output)["error"]

    def test_invalid_kind(self, catalog_dir):
        result = runner.invoke(app, ["--json", "compare", "Mainframe", "--catalog-dir", str(catalog_dir)])
        assert result.exit_code == 1
        assert "resource kind" in json.loads(result.output)["error"]

    def test_unknown_template(self, catalog_dir):
        result = runner.invoke(app, ["--json", "compare", "--template", "Kiosk", "--catalog-dir", str(catalog_dir)])
        assert result.exit_code == 1
        assert "Invalid template" in json.loads(result.output)["error"]

    def test_broken_catalog_file(self, tmp_path):
        (tmp_path / "gcp.json").write_text("{broken")
        result = runner.invoke(app, ["--json", "compare", "VirtualMachines", "--catalog-dir", str(tmp_path)])
        assert result.exit_code == 1
        assert json.loads(result.output)["error"].startswith("Catalog error:")


class TestNormalize:
    def test_json(self, catalog_dir):
        result = runner.invoke(app, ["--json", "normalize", "Compute", "Database", "--catalog-dir", str(catalog_dir)])
        assert result.exit_code == 0, result.output
        categories = json.loads(result.output)["categories"]
        assert list(categories) == ["Compute", "Database"]
        assert categories["Compute"][0]["name"] == "t2.medium"
        assert categories["Database"][0]["database_engine"] == "MySQL"

    def test_table(self, catalog_dir):
        result = runner.invoke(app, ["normalize", "Compute", "--catalog-dir", str(catalog_dir)])
        assert result.exit_code == 0, result.output
        assert "t2.medium" in result.output

    def test_empty_catalog(self, tmp_path):
        result = runner.invoke(app, ["normalize", "Storage", "--catalog-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "No resources found" in result.output

    def test_unknown_category(self, catalog_dir):
        result = runner.invoke(app, ["--json", "normalize", "Quantum", "--catalog-dir", str(catalog_dir)])
        assert result.exit_code == 1
        assert "Invalid category" in json.loads(result.output)["error"]


class TestTemplates:
    def test_json(self):
        result = runner.invoke(app, ["--json", "templates"])
        assert result.exit_code == 0
        templates = json.loads(result.output)["templates"]
        assert templates[0] == {"name": "Blank", "description": "Start from nothing", "resources": []}

    def test_table(self):
        result = runner.invoke(app, ["templates"])
        assert result.exit_code == 0
        assert "WordPress" in result.output


class TestCatalog:
    def test_mappings_json(self, catalog_dir):
        result = runner.invoke(app, ["--json", "catalog", "mappings", "--catalog-dir", str(catalog_dir)])
        assert result.exit_code == 0, result.output
        mappings = json.loads(result.output)["mappings"]
        assert [(m["service"], m["sub_category"]) for m in mappings] == [
            ("AmazonEC2", "VirtualMachines"),
            ("AmazonRDS", "Relational"),
        ]

    def test_mappings_for_other_provider_is_empty(self, catalog_dir):
        result = runner.invoke(app, ["catalog", "mappings", "--provider", "gcp", "--catalog-dir", str(catalog_dir)])
        assert result.exit_code == 0
        assert "Catalog is empty" in result.output

    def test_mappings_unknown_provider(self, catalog_dir):
        result = runner.invoke(app, ["catalog", "mappings", "--provider", "oracle", "--catalog-dir", str(catalog_dir)])
        assert result.exit_code == 1

    def test_rules_json(self):
        result = runner.invoke(app, ["--json", "catalog", "rules"])
        assert result.exit_code == 0
        stats = json.loads(result.output)["rules"]
        assert set(stats) == {"aws", "azure", "gcp"}
        assert all(count > 0 for count in stats.values())


class TestProjectConfig:
    def test_tier_and_catalog_from_project(self, catalog_dir, monkeypatch):
        root = catalog_dir.parent
        (root / ".costwright").mkdir()
        (root / ".costwright" / "config.yaml").write_text("tier: Medium\ncatalog_dir: catalog\n")
        monkeypatch.chdir(root)

        result = runner.invoke(app, ["--json", "compare", "VirtualMachines"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["usage"] == "Medium"
        assert data["results"][0]["total_monthly_price"] == "0"


class TestServe:
    def test_runs_uvicorn_with_web_app(self):
        from costwright_web.app import app as web_app

        with patch("uvicorn.run") as run:
            result = runner.invoke(app, ["serve", "--port", "8123"])
        assert result.exit_code == 0, result.output
        run.assert_called_once_with(web_app, host="127.0.0.1", port=8123)
