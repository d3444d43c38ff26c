import sys
from pathlib import Path
from typing import Callable, Generator

import pytest
from loguru import logger

from coreason_anvil.context import InstallerPayload, SandboxInstallationContext, SandboxSizing
from coreason_anvil.workspace import InstallerWorkspace

PETALINUX_INSTALLER = "petalinux-v2020.1-final-installer.run"
XILINX_ARCHIVE = "Xilinx_Unified_2020.1_0602_1208.tar.gz"


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep log files out of the working tree and restore loguru's default sink afterwards."""
    monkeypatch.setenv("COREASON_ANVIL_LOG_DIR", str(tmp_path / "logs"))
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def installers(tmp_path: Path) -> dict[str, Path]:
    """Stand-in installer payloads with recognizable contents."""
    payloads = tmp_path / "payloads"
    payloads.mkdir()
    petalinux = payloads / PETALINUX_INSTALLER
    petalinux.write_bytes(b"petalinux-installer")
    xilinx = payloads / XILINX_ARCHIVE
    xilinx.write_bytes(b"xilinx-archive")
    return {"petalinux": petalinux, "xilinx": xilinx}


@pytest.fixture
def make_installation_context(
    tmp_path: Path, installers: dict[str, Path]
) -> Callable[..., SandboxInstallationContext]:
    def _make(
        sireum: bool = True,
        petalinux: bool = False,
        xilinx: bool = False,
        root: Path | None = None,
    ) -> SandboxInstallationContext:
        return SandboxInstallationContext(
            workspace=InstallerWorkspace(root=root or tmp_path / "sandbox"),
            payload=InstallerPayload(
                install_sireum=sireum,
                petalinux_installer_path=installers["petalinux"] if petalinux else None,
                xilinx_unified_path=installers["xilinx"] if xilinx else None,
            ),
            sizing=SandboxSizing(graphics_controller="VBoxSVGA"),
        )

    return _make
