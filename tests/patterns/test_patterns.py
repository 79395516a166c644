import pytest

from depimpact.patterns import import_patterns_for, terraform_short_name


class TestImportPatterns:
    def test_npm(self) -> None:
        patterns = import_patterns_for("axios", "npm")

        assert patterns == [
            'from "axios"',
            "from 'axios'",
            'require("axios")',
            "require('axios')",
            'from "axios/',
            "from 'axios/",
        ]
        assert not any(p.startswith(("resource", "data", "provider")) for p in patterns)

    def test_pip(self) -> None:
        assert import_patterns_for("requests", "pip") == ["import requests", "from requests"]

    def test_go(self) -> None:
        assert import_patterns_for("github.com/gin-gonic/gin", "go") == [
            '"github.com/gin-gonic/gin"',
            '"github.com/gin-gonic/gin/',
        ]

    def test_terraform_registry_path(self) -> None:
        patterns = import_patterns_for("registry.terraform.io/hashicorp/aws", "terraform")

        assert patterns == ['resource "aws_', 'data "aws_', 'provider "aws"']
        assert not any(p.startswith("module") for p in patterns)

    def test_terraform_short_path(self) -> None:
        assert import_patterns_for("hashicorp/google", "terraform") == [
            'resource "google_',
            'data "google_',
            'provider "google"',
        ]

    def test_unknown_ecosystem_falls_back_to_name(self) -> None:
        assert import_patterns_for("left-pad", "cargo") == ["left-pad"]


class TestTerraformShortName:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("registry.terraform.io/hashicorp/aws", "aws"),
            ("hashicorp/google", "google"),
            ("random", "random"),
            ("hashicorp/", "hashicorp/"),
        ],
    )
    def test_short_name(self, name: str, expected: str) -> None:
        assert terraform_short_name(name) == expected
