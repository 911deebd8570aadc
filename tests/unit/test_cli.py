"""Tests for CLI module."""

import json
from pathlib import Path

from typer.testing import CliRunner

from wafpolicy import __version__
from wafpolicy.cli import app

runner = CliRunner()


class TestCLI:
    """Tests for CLI commands."""

    def test_version_flag(self) -> None:
        """Test --version flag."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_help_flag(self) -> None:
        """Test --help flag."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "wafpolicy" in result.stdout.lower()

    def test_no_args_shows_help(self) -> None:
        """Test that no arguments shows help (no_args_is_help=True)."""
        result = runner.invoke(app, [])
        # With no_args_is_help=True, typer shows help and may exit with code 0 or 2
        assert result.exit_code in (0, 2)
        assert "Usage" in result.output


class TestCompileCommand:
    """Tests for the compile command."""

    def test_compile_table(self, sample_config: Path, clean_env: None) -> None:
        """Test the default table output."""
        result = runner.invoke(app, ["compile", "--config", str(sample_config)])

        assert result.exit_code == 0
        assert "Scope: CLOUDFRONT" in result.stdout
        assert "Total: 9 rules" in result.stdout

    def test_compile_json(self, sample_config: Path, temp_dir: Path, clean_env: None) -> None:
        """Test JSON output in the WAFv2 request shape."""
        out_dir = temp_dir / "out"
        result = runner.invoke(
            app,
            ["compile", "-c", str(sample_config), "-f", "json", "-o", str(out_dir)],
        )

        assert result.exit_code == 0
        data = json.loads((out_dir / "web-acl.json").read_text())
        assert data["Name"] == "test-waf"
        assert data["Scope"] == "CLOUDFRONT"
        assert [rule["Priority"] for rule in data["Rules"]] == list(range(1, 10))

    def test_compile_terraform(self, regional_config: Path, temp_dir: Path, clean_env: None) -> None:
        """Test Terraform files are written to the output directory."""
        out_dir = temp_dir / "tf"
        result = runner.invoke(
            app,
            ["compile", "-c", str(regional_config), "-f", "terraform", "-o", str(out_dir)],
        )

        assert result.exit_code == 0
        for filename in ["main.tf", "variables.tf", "outputs.tf"]:
            assert (out_dir / filename).exists()
        main = (out_dir / "main.tf").read_text()
        assert 'scope = "REGIONAL"' in main
        assert "aws_wafv2_web_acl_association" in main

    def test_compile_region_override(self, sample_config: Path, clean_env: None) -> None:
        """Test --region overrides the configured region."""
        result = runner.invoke(
            app, ["compile", "-c", str(sample_config), "--region", "eu-west-1"]
        )

        assert result.exit_code == 0
        assert "Scope: REGIONAL" in result.stdout

    def test_compile_cloudfront_outside_edge_region(
        self, sample_config: Path, clean_env: None
    ) -> None:
        """Test CLOUDFRONT scope outside us-east-1 fails."""
        result = runner.invoke(
            app,
            ["compile", "-c", str(sample_config), "-r", "eu-west-1", "--scope", "cloudfront"],
        )

        assert result.exit_code == 1
        assert "Error:" in result.stdout
        assert "us-east-1" in result.stdout

    def test_compile_priority_collision(self, temp_dir: Path, clean_env: None) -> None:
        """Test colliding priorities exit with an error."""
        config_path = temp_dir / "collision.yml"
        config_path.write_text(
            "region: eu-west-1\n"
            "rules:\n"
            "  rate_limit: {limit: 100, priority: 1}\n"
            "  geo_block: {country_codes: [CN], priority: 1}\n"
        )

        result = runner.invoke(app, ["compile", "-c", str(config_path)])

        assert result.exit_code == 1
        assert "Priority 1" in result.stdout

    def test_compile_uses_configured_output(self, temp_dir: Path, clean_env: None) -> None:
        """Test the output section selects format and directory without flags."""
        out_dir = temp_dir / "out"
        config_path = temp_dir / "policy.yml"
        config_path.write_text(
            "region: eu-west-1\n"
            "rules:\n"
            "  ip_sets:\n"
            "    - {name: Office, addresses: [203.0.113.0/24], action: ALLOW}\n"
            "  enable_managed_rules: true\n"
            "output:\n"
            "  format: json\n"
            f"  output_dir: {out_dir}\n"
        )

        result = runner.invoke(app, ["compile", "--config", str(config_path)])

        assert result.exit_code == 0
        assert "Total:" not in result.stdout
        web_acl = json.loads((out_dir / "web-acl.json").read_text())
        assert len(web_acl["Rules"]) == 8
        ip_sets = json.loads((out_dir / "ip-sets.json").read_text())
        assert ip_sets[0]["Name"] == "Office"
        assert ip_sets[0]["Scope"] == "REGIONAL"

    def test_format_flag_overrides_configured_output(
        self, temp_dir: Path, clean_env: None
    ) -> None:
        """Test --format takes precedence over the output section."""
        out_dir = temp_dir / "out"
        config_path = temp_dir / "policy.yml"
        config_path.write_text(
            "region: eu-west-1\n"
            "output:\n"
            "  format: terraform\n"
            f"  output_dir: {out_dir}\n"
        )

        result = runner.invoke(app, ["compile", "-c", str(config_path), "-f", "table"])

        assert result.exit_code == 0
        assert "Total: 0 rules" in result.stdout
        assert not out_dir.exists()

    def test_compile_cloudfront_without_region(self, temp_dir: Path, clean_env: None) -> None:
        """Test CLOUDFRONT scope without any region fails."""
        config_path = temp_dir / "policy.yml"
        config_path.write_text("name: no-region\n")

        result = runner.invoke(app, ["compile", "-c", str(config_path), "--scope", "CLOUDFRONT"])

        assert result.exit_code == 1
        assert "Error:" in result.stdout

    def test_invalid_scope(self, sample_config: Path) -> None:
        """Test an unknown scope is rejected."""
        result = runner.invoke(app, ["compile", "-c", str(sample_config), "--scope", "global"])
        assert result.exit_code == 1
        assert "Invalid scope" in result.stdout

    def test_unsupported_format(self, sample_config: Path) -> None:
        """Test an unknown output format is rejected."""
        result = runner.invoke(app, ["compile", "-c", str(sample_config), "-f", "xml"])
        assert result.exit_code == 1
        assert "Unsupported format" in result.stdout


class TestScopeCommand:
    """Tests for the scope command."""

    def test_edge_region(self) -> None:
        """Test us-east-1 resolves to CLOUDFRONT."""
        result = runner.invoke(app, ["scope", "us-east-1"])
        assert result.exit_code == 0
        assert "Scope: CLOUDFRONT" in result.stdout

    def test_other_region(self) -> None:
        """Test other regions resolve to REGIONAL."""
        result = runner.invoke(app, ["scope", "eu-west-1"])
        assert result.exit_code == 0
        assert "Scope: REGIONAL" in result.stdout

    def test_token_region_with_cloudfront(self) -> None:
        """Test a deploy-time token passes the CLOUDFRONT check."""
        result = runner.invoke(app, ["scope", "${AWS::Region}", "--scope", "CLOUDFRONT"])
        assert result.exit_code == 0
        assert "Scope: CLOUDFRONT" in result.stdout

    def test_cloudfront_outside_edge_region(self) -> None:
        """Test CLOUDFRONT scope is rejected outside us-east-1."""
        result = runner.invoke(app, ["scope", "eu-west-1", "--scope", "CLOUDFRONT"])
        assert result.exit_code == 1
        assert "Error:" in result.stdout


class TestManagedRulesCommand:
    """Tests for the managed-rules command."""

    def test_lists_catalog(self) -> None:
        """Test the default managed rule groups are listed."""
        result = runner.invoke(app, ["managed-rules"])
        assert result.exit_code == 0
        assert "Total: 7 rule groups" in result.stdout


class TestConfigCommands:
    """Tests for config subcommands."""

    def test_config_help(self) -> None:
        """Test config --help."""
        result = runner.invoke(app, ["config", "--help"])
        assert result.exit_code == 0
        assert "init" in result.stdout

    def test_config_init(self, temp_dir: Path) -> None:
        """Test config init creates a configuration file."""
        result = runner.invoke(app, ["config", "init", str(temp_dir)])
        assert result.exit_code == 0
        assert (temp_dir / ".wafpolicy.yml").exists()

    def test_config_init_existing(self, temp_dir: Path) -> None:
        """Test config init refuses to overwrite without --force."""
        (temp_dir / ".wafpolicy.yml").write_text("version: 1\n")

        result = runner.invoke(app, ["config", "init", str(temp_dir)])
        assert result.exit_code == 1
        assert "already exists" in result.stdout

        result = runner.invoke(app, ["config", "init", str(temp_dir), "--force"])
        assert result.exit_code == 0
        assert "my-app-waf" in (temp_dir / ".wafpolicy.yml").read_text()

    def test_config_validate(self, sample_config: Path, clean_env: None) -> None:
        """Test config validate accepts a valid file."""
        result = runner.invoke(app, ["config", "validate", str(sample_config)])
        assert result.exit_code == 0
        assert "Configuration is valid." in result.stdout

    def test_config_validate_invalid(self, temp_dir: Path, clean_env: None) -> None:
        """Test config validate rejects an invalid file."""
        config_path = temp_dir / "invalid.yml"
        config_path.write_text("rules:\n  geo_block:\n    country_codes: [XYZ]\n")

        result = runner.invoke(app, ["config", "validate", str(config_path)])
        assert result.exit_code == 1
        assert "Error:" in result.stdout

    def test_config_show(self, sample_config: Path, clean_env: None) -> None:
        """Test config show prints the effective settings."""
        result = runner.invoke(app, ["config", "show", "--config", str(sample_config)])
        assert result.exit_code == 0
        assert "test-waf" in result.stdout


class TestGlobalOptions:
    """Tests for global CLI options."""

    def test_verbose_flag(self) -> None:
        """Test --verbose flag is accepted."""
        result = runner.invoke(app, ["--verbose", "managed-rules"])
        assert result.exit_code == 0

    def test_quiet_flag(self) -> None:
        """Test --quiet flag is accepted."""
        result = runner.invoke(app, ["--quiet", "managed-rules"])
        assert result.exit_code == 0
