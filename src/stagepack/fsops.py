"""Filesystem capabilities used by the staging steps.

Each public coroutine runs its blocking work in a worker thread so concurrent
builds on one event loop interleave at every filesystem call.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from pathlib import Path


async def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree; missing paths are fine."""
    await asyncio.to_thread(_remove_path, path)


async def make_dirs(path: Path) -> None:
    await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)


async def copy_file(source: Path, destination: Path) -> Path:
    return await asyncio.to_thread(_copy_file, source, destination)


async def mirror(source: Path, destination: Path) -> None:
    """Merge *source* into *destination*, keeping files only present there."""
    await asyncio.to_thread(_mirror_tree, source, destination)


async def create_symlink(link: Path, target: str) -> None:
    """Create *link* pointing at *target*, replacing a previous symlink."""
    await asyncio.to_thread(_create_symlink, link, target)


def relative_link_target(source: Path, link: Path) -> str:
    return os.path.relpath(source, link.parent)


def _remove_path(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink(missing_ok=True)
    elif path.is_dir():
        shutil.rmtree(path)


def _copy_file(source: Path, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    _unlink_symlink(destination)
    return Path(shutil.copy2(source, destination))


def _mirror_tree(source: Path, destination: Path) -> None:
    destination.mkdir(parents=True, exist_ok=True)
    with os.scandir(source) as entries:
        for entry in sorted(entries, key=lambda item: item.name):
            target = destination / entry.name
            # Never write through a link left in the destination.
            _unlink_symlink(target)
            if entry.is_symlink():
                if target.is_file():
                    target.unlink()
                os.symlink(os.readlink(entry.path), target)
            elif entry.is_dir():
                _mirror_tree(Path(entry.path), target)
            else:
                shutil.copy2(entry.path, target)
    shutil.copystat(source, destination)


def _create_symlink(link: Path, target: str) -> None:
    _unlink_symlink(link)
    link.parent.mkdir(parents=True, exist_ok=True)
    os.symlink(target, link)


def _unlink_symlink(path: Path) -> None:
    if path.is_symlink():
        path.unlink()
