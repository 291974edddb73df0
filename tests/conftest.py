"""Shared test fixtures."""

import pytest

SAMPLE_SETTINGS = """# Analyzer settings for tests
@{
    ExcludeRules = @(
        'PSAvoidUsingWriteHost',
        'PSUseShouldProcessForStateChangingFunctions'
    )

    Rules = @{
        PSAvoidUsingWriteHost = @{ Enable = $true }

        PSAvoidLongLines = @{
            Enable = $true
            MaximumLineLength = 120
        }

        PSUseCompatibleCmdlets = @{ Enable = $false; Options = @{ Required = 'Desktop' } }

        PSAvoidUsingCmdletAliases = @{
            Enable = $false
        }
    }
}
"""

SAMPLE_YAML = """\
ExcludeRules:
  - PSAvoidUsingWriteHost
Rules:
  PSAvoidLongLines:
    Enable: true
    Options:
      MaximumLineLength: 100
  PSAvoidUsingCmdletAliases:
    Enable: false
"""

SAMPLE_JSON = """{
  "ExcludeRules": ["PSAvoidUsingWriteHost"],
  "Rules": {
    "PSAvoidLongLines": {"Enable": true, "Options": {"MaximumLineLength": 100}},
    "PSAvoidUsingCmdletAliases": {"Enable": false}
  }
}
"""

MALFORMED_SETTINGS = """@{
    Rules = @{
        PSAvoidLongLines = @{
            Enable = 'yes'
        }
    }
}
"""


@pytest.fixture
def sample_settings():
    return SAMPLE_SETTINGS


@pytest.fixture
def sample_yaml():
    return SAMPLE_YAML


@pytest.fixture
def sample_json():
    return SAMPLE_JSON


@pytest.fixture
def malformed_settings():
    return MALFORMED_SETTINGS


@pytest.fixture
def sample_config(sample_settings):
    from ruleconfig.ingest.loader import load
    return load(sample_settings)


@pytest.fixture
def settings_file(tmp_path, sample_settings):
    path = tmp_path / "PSScriptAnalyzerSettings.psd1"
    path.write_text(sample_settings, encoding="utf-8")
    return path
