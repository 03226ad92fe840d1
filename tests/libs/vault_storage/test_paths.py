"""Tests for PathBuilder."""

import pytest

from libs.vault_storage.paths import DEFAULT_PREFIX, Axis, PathBuilder


class TestPathBuilder:
    def test_data_path(self):
        paths = PathBuilder("https://vault.example.com:8200")

        assert paths.data_path("acme/account.json") == "/v1/caddycerts/data/acme/account.json"

    def test_metadata_path(self):
        paths = PathBuilder("https://vault.example.com:8200", prefix="tls")

        assert paths.metadata_path("a") == "/v1/tls/metadata/a"

    def test_empty_key_ends_with_slash(self):
        assert PathBuilder().build_path(Axis.METADATA) == "/v1/caddycerts/metadata/"

    @pytest.mark.parametrize("prefix", [None, "", "/"])
    def test_empty_prefix_falls_back_to_default(self, prefix):
        assert PathBuilder(prefix=prefix).prefix == DEFAULT_PREFIX

    def test_prefix_slashes_are_stripped(self):
        assert PathBuilder(prefix="/secret/tls/").data_path("a") == "/v1/secret/tls/data/a"

    def test_build_url_is_absolute(self):
        paths = PathBuilder("https://vault.example.com:8200/")

        assert paths.build_url("data", "a") == "https://vault.example.com:8200/v1/caddycerts/data/a"

    def test_unknown_axis_rejected(self):
        with pytest.raises(ValueError):
            PathBuilder().build_path("config", "a")
