"""
macOS workstation setup - shells, Homebrew packages and casks, fonts and
widgets, and application preferences.

Run from this directory:
    converge plan
    converge apply
    converge apply --only shell
"""

import os
from pathlib import Path

from converge.probes import (
    CommandOutputProbe,
    CommandSucceedsProbe,
    FileContainsProbe,
    FileExistsProbe,
    LoginShellProbe,
    PackageReceiptProbe,
)
from converge.resources import (
    CommandResource,
    DirectoryResource,
    FileDownloadResource,
    PackageResource,
    casks,
    packages,
    settings,
)
from converge.settings import get_settings

HOME = Path.home()
BREW_PREFIX = os.environ.get("HOMEBREW_PREFIX", "/usr/local")
CACHE_DIR = get_settings().cache_dir
FONTS_DIR = HOME / "Library" / "Fonts"
SHELLS_FILE = "/etc/shells"
ZSH_PATH = f"{BREW_PREFIX}/bin/zsh"

RESOURCES = []

###############################################################################
# SHELLS
###############################################################################

# Shells come first: registering them prompts for a password, and zsh must
# exist before it can become the login shell.
for shell in ("bash", "zsh"):
    shell_path = f"{BREW_PREFIX}/bin/{shell}"
    RESOURCES += [
        PackageResource(name=shell, tags=["shell"]),
        CommandResource(
            name=f"add {shell_path} to {SHELLS_FILE}",
            command=["sudo", "bash", "-c", f"echo '{shell_path}' >> '{SHELLS_FILE}'"],
            not_if=FileContainsProbe(path=SHELLS_FILE, line=shell_path),
            depends_on=[shell],
            tags=["shell"],
        ),
    ]

RESOURCES += [
    CommandResource(
        name=f"set {ZSH_PATH} as default shell",
        command=["chsh", "-s", ZSH_PATH],
        not_if=LoginShellProbe(shell=ZSH_PATH),
        depends_on=[f"add {ZSH_PATH} to {SHELLS_FILE}"],
        tags=["shell"],
    ),
    CommandResource(
        name="fix the zsh startup file that path_helper uses",
        command=["sudo", "mv", "/etc/zshenv", "/etc/zprofile"],
        only_if=FileExistsProbe(path="/etc/zshenv"),
        tags=["shell"],
    ),
]

###############################################################################
# HOMEBREW
###############################################################################

RESOURCES += [
    CommandResource(
        name="tap homebrew/command-not-found",
        command=["brew", "tap", "homebrew/command-not-found"],
        not_if=CommandOutputProbe(
            command="brew tap | grep -x homebrew/command-not-found",
            expected="homebrew/command-not-found",
        ),
        tags=["homebrew"],
    ),
    PackageResource(
        name="emacs",
        options=["--cocoa", "--with-gnutls", "--with-glib"],
        tags=["homebrew"],
    ),
    CommandResource(
        name="link Emacs.app to /Applications",
        command=["brew", "linkapps", "emacs"],
        creates="/Applications/Emacs.app",
        depends_on=["emacs"],
        tags=["homebrew"],
    ),
    PackageResource(name="git", options=["--with-pcre"], tags=["homebrew"]),
]

RESOURCES += packages(
    [
        "ack", "aria2", "coreutils", "dos2unix", "duti", "editorconfig",
        "ghostscript", "gnu-tar", "graphviz", "htop-osx", "hub", "imagemagick",
        "mercurial", "mobile-shell", "nmap", "node", "p7zip", "parallel",
        "pstree", "pwgen", "pyenv", "pyenv-virtualenv", "rbenv", "ruby-build",
        "reattach-to-user-namespace", "ssh-copy-id", "the_silver_searcher",
        "tmux", "tree", "watch", "wget", "xz", "zsh-syntax-highlighting",
    ],
    tags=["homebrew", "formulae"],
)

RESOURCES += casks(
    [
        "caffeine", "dash", "firefox", "flux", "gimp", "google-chrome",
        "inkscape", "iterm2", "jettison", "karabiner", "libreoffice",
        "quicksilver", "skim", "spotify", "vagrant", "virtualbox", "xquartz",
    ],
    tags=["homebrew", "casks"],
    best_effort=True,
)

###############################################################################
# ASSETS
###############################################################################

UBUNTU_FONT_ARCHIVE = CACHE_DIR / "ubuntu-font-family-0.83.zip"
UBUNTU_FONT_DIR = FONTS_DIR / "Ubuntu"
TASKS_EXPLORER_PKG = CACHE_DIR / "Tasks Explorer.pkg"
TASKS_EXPLORER_ID = "com.macosinternals.tasksexplorer.Contents.pkg"
BACKGROUNDS_DIR = HOME / "Pictures" / "Backgrounds"

RESOURCES += [
    DirectoryResource(name="download cache", path=CACHE_DIR, tags=["assets"]),
    DirectoryResource(name="Ubuntu font directory", path=UBUNTU_FONT_DIR, tags=["assets"]),
    FileDownloadResource(
        name="download Ubuntu fonts",
        url="http://font.ubuntu.com/download/ubuntu-font-family-0.83.zip",
        path=UBUNTU_FONT_ARCHIVE,
        checksum="456d7d42797febd0d7d4cf1b782a2e03680bb4a5ee43cc9d06bda172bac05b42",
        depends_on=["download cache", "Ubuntu font directory"],
        notifies=["install Ubuntu fonts"],
        tags=["assets", "fonts"],
    ),
    CommandResource(
        name="install Ubuntu fonts",
        command=["unzip", "-o", str(UBUNTU_FONT_ARCHIVE)],
        cwd=UBUNTU_FONT_DIR,
        notify_only=True,
        tags=["assets", "fonts"],
    ),
    FileDownloadResource(
        name="download Inconsolata for Powerline font",
        url="https://github.com/powerline/fonts/raw/master/Inconsolata/"
            "Inconsolata%20for%20Powerline.otf",
        path=FONTS_DIR / "Inconsolata for Powerline.otf",
        tags=["assets", "fonts"],
    ),
    FileDownloadResource(
        name="download Tasks Explorer pkg",
        url="https://github.com/astavonin/Tasks-Explorer/blob/master/release/"
            "Tasks%20Explorer.pkg?raw=true",
        path=TASKS_EXPLORER_PKG,
        checksum="8fa4fff39a6cdea368e0110905253d7fb9e26e36bbe053704330fe9f24f7db6a",
        depends_on=["download cache"],
        tags=["assets"],
    ),
    CommandResource(
        name="install Tasks Explorer",
        command=["sudo", "installer", "-pkg", str(TASKS_EXPLORER_PKG), "-target", "/"],
        not_if=PackageReceiptProbe(package_id=TASKS_EXPLORER_ID),
        depends_on=["download Tasks Explorer pkg"],
        tags=["assets"],
    ),
    DirectoryResource(name="backgrounds directory", path=BACKGROUNDS_DIR, tags=["assets"]),
    CommandResource(
        name="set Skim as PDF viewer",
        command=["duti", "-s", "net.sourceforge.skim-app.skim", "pdf", "all"],
        not_if=CommandOutputProbe(command=["duti", "-x", "pdf"], expected="Skim.app"),
        depends_on=["duti", "skim"],
        best_effort=True,
    ),
]

###############################################################################
# PREFERENCES
###############################################################################

RESOURCES += settings(
    "com.apple.menuextra.clock",
    {"DateFormat": "EEE MMM d  H:mm", "FlashDateSeparators": False, "IsAnalog": False},
    tags=["preferences"],
)
RESOURCES += settings(
    "com.apple.menuextra.battery", {"ShowPercent": True}, tags=["preferences"]
)
RESOURCES += settings(
    "com.lightheadsw.caffeine",
    {"ActivateOnLaunch": True, "DefaultDuration": 0, "SuppressLaunchMessage": True},
    tags=["preferences"],
)
RESOURCES += settings(
    "com.googlecode.iterm2",
    {
        "Hotkey": True,
        "HotkeyChar": 59,
        "HotkeyCode": 41,
        "HotkeyModifiers": 1_048_840,
        "PasteFromClipboard": False,
    },
    tags=["preferences"],
)
RESOURCES += settings(
    "NSGlobalDomain",
    {
        "AppleShowScrollBars": "Always",
        "AppleKeyboardUIMode": 2,
        "NSWindowResizeTime": 0.001,
        "NSNavPanelExpandedStateForSaveMode": True,
        "NSDocumentSaveNewDocumentsToCloud": False,
        "ApplePressAndHoldEnabled": False,
        "KeyRepeat": 2,
        "InitialKeyRepeat": 15,
        "AppleShowAllExtensions": True,
        "com.apple.springing.enabled": True,
        "com.apple.springing.delay": 0.0,
    },
    tags=["preferences"],
)
RESOURCES += settings(
    "com.apple.finder",
    {
        "QuitMenuItem": True,
        "ShowStatusBar": True,
        "ShowPathbar": True,
        "_FXShowPosixPathInTitle": True,
        "FXDefaultSearchScope": "SCcf",
        "FXEnableExtensionChangeWarning": False,
        "FXPreferredViewStyle": "Nlsv",
    },
    tags=["preferences"],
)
RESOURCES += settings(
    "com.apple.dock",
    {"autohide-delay": 0.0, "autohide-time-modifier": 0.0, "autohide": True, "showhidden": True},
    tags=["preferences"],
)
RESOURCES += settings(
    "/Library/Preferences/com.apple.loginwindow",
    {"AdminHostInfo": "HostName"},
    tags=["preferences"],
)

###############################################################################
# CLEANUP
###############################################################################

RESOURCES += [
    CommandResource(
        name="invalidate sudo timestamp",
        command=["sudo", "-k"],
        # sudo -n never prompts; it only succeeds with a cached timestamp
        only_if=CommandSucceedsProbe(command=["sudo", "-n", "true"]),
    ),
]
