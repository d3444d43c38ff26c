# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_anvil

"""Text templates for the sandbox Vagrantfile and provisioning scripts.

Every function is pure: the same parameters always render the same bytes.
"""

import textwrap
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

FROZEN = ConfigDict(frozen=True)

VAGRANT_PLUGINS = ("vagrant-disksize", "vagrant-vbguest")
PROVISIONING_STARTED = "Provisioning started, this may take a few hours."
PROVISIONING_COMPLETE = "Provisioning complete, please reboot the machine now."


class VagrantfileParameters(BaseModel):
    model_config = FROZEN

    box: str = "bento/ubuntu-16.04"
    box_version: str = "201806.08.0"
    hostname: str
    vm_name: str
    num_cpus: int
    memory_mb: int
    vram_mb: int
    enable_gui: bool
    graphics_controller: str
    disk_size: str
    ssh_shell: str = "bash"
    username: str
    password: str
    plugins: tuple[str, ...] = VAGRANT_PLUGINS
    # Paths relative to the Vagrantfile.
    required_installers: tuple[str, ...] = ()
    provision_scripts: tuple[str, ...] = ()
    synced_folder: tuple[str, str] = ("./", "/vagrant")


class PetalinuxScriptParameters(BaseModel):
    model_config = FROZEN

    username: str
    installer_name: str
    shared_downloads: str
    guest_downloads: str
    target_dir: str
    platform: str
    source_script: str


class VivadoScriptParameters(BaseModel):
    model_config = FROZEN

    username: str
    archive_name: str
    extracted_name: str
    shared_downloads: str
    guest_downloads: str
    target_dir: str
    edition: str
    product: str
    agreements: tuple[str, ...]
    source_script: str


class SireumScriptParameters(BaseModel):
    model_config = FROZEN

    username: str
    repository: str
    target_dir: str


def _ruby_bool(value: bool) -> str:
    return "true" if value else "false"


def _indent(lines: Sequence[str], width: int = 2) -> str:
    pad = " " * width
    return "\n".join(f"{pad}{line}" if line else "" for line in lines)


def disk_growth_commands(
    device: str = "/dev/sda",
    boot_partition: int = 1,
    lvm_partitions: Sequence[int] = (2, 5),
    logical_volume: str = "/dev/mapper/vagrant--vg-root",
) -> list[str]:
    """Commands that grow the guest filesystem into a resized disk.

    Order matters: each step works on the state left by the previous one
    (unmount, resize partitions, resize physical volumes, resize the logical
    volume and its filesystem, remount). Partition numbers match the
    ``bento/ubuntu-16.04`` box layout.
    """
    commands = ["fdisk -l", f"umount {device}{boot_partition}"]
    commands.extend(f"parted {device} resizepart {p} 100%" for p in lvm_partitions)
    commands.extend(f"pvresize {device}{p}" for p in lvm_partitions)
    commands.append(f"lvresize -rl +100%FREE {logical_volume}")
    commands.append(f"mount {device}{boot_partition}")
    commands.append("fdisk -l")
    return commands


# ---------------------------------------------------------------------------
# Vagrantfile
# ---------------------------------------------------------------------------

VAGRANTFILE_HEADER = textwrap.dedent("""\
    # -*- mode: ruby -*-
    # vi: set ft=ruby :
    """)


def _render_plugin_check(plugins: Sequence[str]) -> str:
    required = ", ".join(f'"{plugin}"' for plugin in plugins)
    return textwrap.dedent(f"""\
        # Install missing plugins, then re-run the original command
        if ARGV[0] != 'plugin'
          required_plugins = [{required}]
          plugins_to_install = required_plugins.select {{ |plugin| not Vagrant.has_plugin? plugin }}
          if not plugins_to_install.empty?
            puts "Vagrant is installing plugins: #{{plugins_to_install.join(' ')}}"
            if system "vagrant plugin install #{{plugins_to_install.join(' ')}}"
              exec "vagrant #{{ARGV.join(' ')}}"
            else
              abort "An error occurred during plugin installation. Vagrant will now abort."
            end
          end
        end
        """)


def _render_installer_guard(relative_path: str) -> str:
    name = relative_path.rsplit("/", 1)[-1]
    return textwrap.dedent(f"""\
        # confirms installation of {name}
        if !File.file?("./{relative_path}")
          raise "Error: ./{relative_path} was included but cannot be found for provisioning."
        end
        """)


def _vm_block(p: VagrantfileParameters) -> list[str]:
    return [
        f'config.vm.box = "{p.box}"',
        f'config.vm.box_version = "{p.box_version}"',
        f'config.vm.hostname = "{p.hostname}"',
    ]


def _disk_block(p: VagrantfileParameters) -> list[str]:
    return [
        "# Grow the disk, then the root logical volume into the new space",
        f"config.disksize.size = '{p.disk_size}'",
        'config.vm.provision "shell", inline: <<-SHELL',
        *(f"  sudo {command}" for command in disk_growth_commands()),
        "SHELL",
    ]


def _ssh_block(p: VagrantfileParameters) -> list[str]:
    return [
        "# Enable X11 forwarding.",
        f'config.ssh.shell = "{p.ssh_shell}"',
        "config.ssh.forward_x11 = true",
        "config.ssh.forward_agent = true",
        f"config.ssh.username = '{p.username}'",
        f"config.ssh.password = '{p.password}'",
        "config.ssh.insert_key = true",
    ]


def _virtualbox_block(p: VagrantfileParameters) -> list[str]:
    provider = [
        ("name", f'"{p.vm_name}"'),
        ("gui", _ruby_bool(p.enable_gui)),
        ("cpus", str(p.num_cpus)),
        ("memory", str(p.memory_mb)),
    ]
    modifyvm = [
        ("graphicscontroller", p.graphics_controller),
        ("accelerate3d", "on"),
        ("vram", str(p.vram_mb)),
        ("usb", "off"),
        ("usbxhci", "off"),
        ("usbehci", "off"),
    ]
    return [
        "# Fix for vagrant-vbguest",
        "config.vbguest.auto_update = false",
        "config.vbguest.no_remote = true",
        "# VirtualBox-specific configuration.",
        'config.vm.provider "virtualbox" do |v|',
        *(f"  v.{key} = {value}" for key, value in provider),
        *(f'  v.customize ["modifyvm", :id, "--{key}", "{value}"]' for key, value in modifyvm),
        "end",
    ]


def _sync_block(p: VagrantfileParameters) -> list[str]:
    host, guest = p.synced_folder
    return [
        f"# Share the sandbox root with the guest at {guest}",
        f'config.vm.synced_folder "{host}", "{guest}"',
    ]


def _provision_block(p: VagrantfileParameters) -> list[str]:
    return [
        f"config.vm.provision \"shell\", inline: \"echo '{PROVISIONING_STARTED}'\"",
        *(f'config.vm.provision "shell", privileged: false, path: "./{script}"' for script in p.provision_scripts),
        f"config.vm.provision \"shell\", inline: \"echo '{PROVISIONING_COMPLETE}'\"",
    ]


def render_vagrantfile(params: VagrantfileParameters) -> str:
    blocks = [
        _vm_block(params),
        _disk_block(params),
        _ssh_block(params),
        _virtualbox_block(params),
        _sync_block(params),
        _provision_block(params),
    ]
    body = "\n\n".join(_indent(block) for block in blocks)
    sections = [
        VAGRANTFILE_HEADER,
        _render_plugin_check(params.plugins),
        *(_render_installer_guard(path) for path in params.required_installers),
        f"Vagrant.configure(2) do |config|\n{body}\nend\n",
    ]
    return "\n".join(sections)


# ---------------------------------------------------------------------------
# Provisioning scripts
# ---------------------------------------------------------------------------

FIX_DASH_SCRIPT = textwrap.dedent("""\
    #!/usr/bin/env bash
    # Replaces Ubuntu's default shell (dash) with bash; some Xilinx scripts break under dash.
    # see: https://www.xilinx.com/support/documentation/sw_manuals/xilinx2020_1/ug1144-petalinux-tools-reference-guide.pdf#unique_26

    # make bash the default shell
    sudo rm /bin/sh
    sudo ln -s /bin/bash /bin/sh

    # turn off the "dash as system shell" setting (for dpkg-reconfigure)
    echo "dash dash/sh boolean false" | sudo debconf-set-selections
    # then apply this setting noninteractively
    sudo dpkg-reconfigure --frontend noninteractive dash
    """)


def render_fix_dash_script() -> str:
    return FIX_DASH_SCRIPT


def render_dependencies_script(packages: Sequence[str]) -> str:
    """Install OS packages, first tolerating missing packages and then strictly.

    The tolerant pass works around a partially refreshed package index; the
    strict pass fails the provisioner if anything is still missing.
    """
    joined = " ".join(packages)
    return textwrap.dedent(f"""\
        #!/usr/bin/env bash
        sudo apt-get update
        sudo apt-get install --fix-missing --yes {joined}
        sudo apt-get install --yes {joined}
        """)


def render_petalinux_script(p: PetalinuxScriptParameters) -> str:
    installer = f"{p.guest_downloads}/{p.installer_name}"
    return textwrap.dedent(f"""\
        #!/usr/bin/env bash
        # SETUP DIRECTORIES
        sudo rm -rf {p.target_dir}
        sudo mkdir -p {p.target_dir}
        sudo chown {p.username} {p.target_dir}

        # COPY
        # more reliable to copy into the guest and install from there
        mkdir -p {p.guest_downloads}
        cp {p.shared_downloads}/{p.installer_name} {p.guest_downloads}

        # RUN INSTALLER
        # the installer refuses to run as root, grant permissions instead
        sudo chmod a+x {installer}
        sudo chown -R {p.username} {p.guest_downloads}
        yes | {installer} --platform {p.platform} --dir {p.target_dir}

        # load env on login
        echo 'alias petalinuxenv="source {p.target_dir}/{p.source_script}"' >> $HOME/.bashrc

        # CLEAN TEMPORARY FILES
        rm {installer}
        """)


def render_vivado_script(p: VivadoScriptParameters) -> str:
    archive = f"{p.guest_downloads}/{p.archive_name}"
    extracted = f"{p.guest_downloads}/{p.extracted_name}"
    agreements = ",".join(p.agreements)
    return textwrap.dedent(f"""\
        #!/usr/bin/env bash
        # SETUP DIRECTORIES
        sudo rm -rf {p.target_dir}
        sudo mkdir -p {p.target_dir}
        sudo chown {p.username} {p.target_dir}

        # COPY
        echo "copying vivado installer..."
        mkdir -p {p.guest_downloads}
        cp {p.shared_downloads}/{p.archive_name} {p.guest_downloads}
        echo "DONE"

        # UNZIP
        echo "unzipping vivado installer..."
        tar xvzf {archive} -C {p.guest_downloads}/
        echo "DONE"

        # RUN INSTALLER
        echo "running vivado installer..."
        {extracted}/xsetup --agree {agreements} --batch Install --edition "{p.edition}" --location "{p.target_dir}" --product "{p.product}"
        echo "DONE"

        # CREATE ENV SHORTCUT
        echo "creating vivadoenv shortcut..."
        echo 'alias vivadoenv="source {p.target_dir}/{p.source_script}"' >> $HOME/.bashrc
        echo "DONE"

        # CLEAN TEMPORARY FILES
        echo "deleting copied installer tarball..."
        rm {archive}
        echo "DONE"
        echo "deleting extracted installer files..."
        rm -rf {extracted}
        echo "DONE"
        """)


def render_sireum_script(p: SireumScriptParameters) -> str:
    """See https://github.com/sireum/kekinian#git-source-distribution"""
    checkout = p.repository.rstrip("/").rsplit("/", 1)[-1]
    return textwrap.dedent(f"""\
        #!/usr/bin/env bash
        # SETUP DIRECTORIES
        sudo rm -rf {p.target_dir}
        sudo mkdir -p {p.target_dir}
        sudo chown {p.username} {p.target_dir}

        # CLONE
        cd {p.target_dir} && git clone --recursive {p.repository}

        # RUN INSTALLER
        cd {p.target_dir} && {checkout}/bin/build.cmd setup

        # SETUP ENV
        echo 'SIREUM_HOME={p.target_dir}/{checkout}' >> $HOME/.bashrc
        """)
