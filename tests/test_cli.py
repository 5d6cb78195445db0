"""Tests for the sketchddd command-line interface."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
import shutil

import pytest
from click.testing import CliRunner

from sketchddd import __version__
from sketchddd.cli import cli

COMMERCE_YAML = os.path.join(os.path.dirname(__file__), "..", "case_studies", "commerce", "commerce.yaml")

BROKEN_YAML = """\
contexts:
  - name: Shop
    objects:
      - entity: Customer
        fields: {name: String}
      - entity: Order
        fields: {total: Decimal}
    morphisms:
      - {name: placedBy, source: Order, target: Custommer}
"""


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def commerce(tmp_path):
    path = tmp_path / "commerce.yaml"
    shutil.copy(COMMERCE_YAML, path)
    return path


@pytest.fixture
def broken(tmp_path):
    path = tmp_path / "shop.yaml"
    path.write_text(BROKEN_YAML)
    return path


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

class TestCheck:
    def test_valid_model_with_warning(self, runner, commerce):
        result = runner.invoke(cli, ["check", str(commerce)])
        assert result.exit_code == 0
        assert "warning[W0003]" in result.output
        assert "0 error(s), 1 warning(s) emitted" in result.output

    def test_errors_exit_1(self, runner, broken):
        result = runner.invoke(cli, ["check", str(broken)])
        assert result.exit_code == 1
        assert "error[E0002]" in result.output
        assert "did you mean 'Customer'?" in result.output

    def test_json_format(self, runner, broken):
        result = runner.invoke(cli, ["check", str(broken), "--format", "json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["summary"] == {"errorCount": 1, "warningCount": 0}
        assert data["diagnostics"][0]["code"] == "E0002"

    def test_config_controls_help(self, runner, broken):
        (broken.parent / "sketchddd.yaml").write_text("diagnostics: {show_help: false}\n")
        result = runner.invoke(cli, ["check", str(broken)])
        assert "= help:" not in result.output

    def test_missing_file_exit_2(self, runner, tmp_path):
        result = runner.invoke(cli, ["check", str(tmp_path / "none.yaml")])
        assert result.exit_code == 2
        assert "cannot read model file" in result.output

    def test_malformed_model_exit_2(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("contxts: []\n")
        result = runner.invoke(cli, ["check", str(path)])
        assert result.exit_code == 2
        assert "unknown key 'contxts'" in result.output

    def test_bad_config_exit_2(self, runner, commerce):
        (commerce.parent / "sketchddd.yaml").write_text("targets: [cobol]\n")
        result = runner.invoke(cli, ["check", str(commerce)])
        assert result.exit_code == 2
        assert "unsupported target 'cobol'" in result.output


# ---------------------------------------------------------------------------
# codegen
# ---------------------------------------------------------------------------

class TestCodegen:
    def test_print_to_stdout(self, runner, commerce):
        result = runner.invoke(cli, ["codegen", str(commerce), "-t", "rs"])
        assert result.exit_code == 0
        assert "// ---- rust: commerce.rs" in result.output
        assert "// ---- rust: shipping.rs" in result.output
        assert "pub mod order_aggregate {" in result.output

    def test_write_files(self, runner, commerce, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(cli, ["codegen", str(commerce), "--context", "Commerce",
                                     "-t", "java", "-t", "typescript", "-o", str(out)])
        assert result.exit_code == 0
        assert (out / "java" / "com" / "example" / "domain" / "Order.java").exists()
        assert (out / "typescript" / "Commerce.ts").exists()
        assert not (out / "typescript" / "Shipping.ts").exists()

    def test_targets_from_config(self, runner, commerce, tmp_path):
        (commerce.parent / "sketchddd.yaml").write_text(
            "targets: [kotlin]\noptions:\n  kotlin: {package_name: org.shop}\n"
        )
        result = runner.invoke(cli, ["codegen", str(commerce), "--context", "Commerce"])
        assert result.exit_code == 0
        assert "// ---- kotlin: Commerce.kt" in result.output
        assert "package org.shop" in result.output

    def test_invalid_model_refused(self, runner, broken):
        result = runner.invoke(cli, ["codegen", str(broken)])
        assert result.exit_code == 1
        assert "error[E0002]" in result.output
        assert "code generation refused" in result.output

    def test_unknown_target(self, runner, commerce):
        result = runner.invoke(cli, ["codegen", str(commerce), "-t", "cobol"])
        assert result.exit_code == 2

    def test_unknown_context(self, runner, commerce):
        result = runner.invoke(cli, ["codegen", str(commerce), "--context", "Billing"])
        assert result.exit_code == 2
        assert "no bounded context named 'Billing' (have: Commerce, Shipping)" in result.output


# ---------------------------------------------------------------------------
# viz, explain, init
# ---------------------------------------------------------------------------

class TestViz:
    def test_graphviz(self, runner, commerce):
        result = runner.invoke(cli, ["viz", str(commerce), "--format", "dot"])
        assert result.exit_code == 0
        assert 'digraph "Commerce" {' in result.output
        assert 'digraph "Shipping" {' in result.output

    def test_write_file(self, runner, commerce, tmp_path):
        out = tmp_path / "commerce.mmd"
        result = runner.invoke(cli, ["viz", str(commerce), "--context", "Shipping", "-o", str(out)])
        assert result.exit_code == 0
        assert out.read_text().startswith("classDiagram\n    %% Shipping\n")

    def test_bad_format(self, runner, commerce):
        result = runner.invoke(cli, ["viz", str(commerce), "--format", "svg"])
        assert result.exit_code == 2
        assert "unknown diagram format 'svg'" in result.output


class TestExplain:
    def test_known_code(self, runner):
        result = runner.invoke(cli, ["explain", "e0002"])
        assert result.exit_code == 0
        assert result.output.startswith("E0002: morphism target not found\n")
        assert "severity: error" in result.output

    def test_unknown_code(self, runner):
        result = runner.invoke(cli, ["explain", "E9999"])
        assert result.exit_code == 2
        assert "unknown diagnostic code 'E9999'" in result.output


class TestInit:
    def test_creates_project(self, runner, tmp_path):
        target = tmp_path / "shop"
        result = runner.invoke(cli, ["init", str(target)])
        assert result.exit_code == 0
        assert (target / "sketchddd.yaml").exists()
        assert (target / "model.yaml").exists()

        check = runner.invoke(cli, ["check", str(target / "model.yaml")])
        assert check.exit_code == 0

    def test_refuses_to_overwrite(self, runner, tmp_path):
        runner.invoke(cli, ["init", str(tmp_path)])
        result = runner.invoke(cli, ["init", str(tmp_path)])
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert runner.invoke(cli, ["init", str(tmp_path), "--force"]).exit_code == 0


class TestGlobalOptions:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_verbosity_flags_accepted(self, runner, commerce):
        result = runner.invoke(cli, ["-q", "--no-color", "check", str(commerce)])
        assert result.exit_code == 0
