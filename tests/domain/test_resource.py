from __future__ import annotations

from pathlib import Path

import pytest

from corecache.domain.errors import ResourceResolutionError
from corecache.domain.resource import DownloadResource


def _resource(cache_dir: Path, name: str) -> DownloadResource:
    return DownloadResource(
        url="https://downloads.example.com/cores/avr-1.8.6.tar.bz2",
        archive_file_name=name,
        checksum="MD5:d41d8cd98f00b204e9800998ecf8427e",
        size=0,
        cache_dir=cache_dir,
    )


def test_archive_path_joins_cache_dir(tmp_path: Path) -> None:
    resource = _resource(tmp_path, "avr-1.8.6.tar.bz2")
    assert resource.archive_path() == tmp_path / "avr-1.8.6.tar.bz2"
    assert resource.to_dict()["cache_dir"] == tmp_path.as_posix()


@pytest.mark.parametrize("name", ["", "..", "../escape.tar.bz2", "nested/avr.tar.bz2", "nested\\avr.zip"])
def test_archive_path_rejects_non_bare_names(tmp_path: Path, name: str) -> None:
    with pytest.raises(ResourceResolutionError):
        _resource(tmp_path, name).archive_path()
