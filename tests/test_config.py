from pathlib import Path

import pytest
from pydantic import ValidationError

from coreason_anvil.config import AnvilConfig


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("COREASON_ANVIL_LOG_DIR", raising=False)
    config = AnvilConfig()

    assert config.vagrant_executable == "vagrant"
    assert config.scp_executable == "scp"
    assert config.console_passthrough is True
    assert config.log_level == "INFO"
    assert config.log_dir == Path("logs")
    assert (config.vm_cpus, config.vm_memory_mb, config.vm_vram_mb, config.vm_gui) == (4, 8192, 64, True)


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COREASON_ANVIL_VAGRANT_EXECUTABLE", "/usr/local/bin/vagrant")
    monkeypatch.setenv("COREASON_ANVIL_CONSOLE_PASSTHROUGH", "false")
    monkeypatch.setenv("COREASON_ANVIL_VM_CPUS", "12")
    monkeypatch.setenv("COREASON_ANVIL_LOG_LEVEL", "DEBUG")

    config = AnvilConfig()

    assert config.vagrant_executable == "/usr/local/bin/vagrant"
    assert config.console_passthrough is False
    assert config.vm_cpus == 12
    assert config.log_level == "DEBUG"


def test_invalid_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COREASON_ANVIL_LOG_LEVEL", "VERBOSE")

    with pytest.raises(ValidationError):
        AnvilConfig()
