import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from mdkb.settings import (
    DEFAULT_ROOT,
    PREVIEW_DEBOUNCE_MS_MAX,
    PREVIEW_DEBOUNCE_MS_MIN,
    ROOT_ENV_VAR,
    normalize_theme,
    preview_debounce_ms,
    resolve_root,
)


def test_resolve_root_precedence(monkeypatch, tmp_path):
    monkeypatch.delenv(ROOT_ENV_VAR, raising=False)
    assert resolve_root(None) == DEFAULT_ROOT
    assert resolve_root(None, str(tmp_path / "last")) == tmp_path / "last"

    monkeypatch.setenv(ROOT_ENV_VAR, str(tmp_path / "env"))
    assert resolve_root(None, str(tmp_path / "last")) == tmp_path / "env"
    assert resolve_root(tmp_path / "cli") == tmp_path / "cli"


def test_normalize_theme():
    assert normalize_theme("DARK ") == "dark"
    assert normalize_theme(None) == "light"
    assert normalize_theme("sepia") == "light"


def test_preview_debounce_grows_with_size():
    assert preview_debounce_ms(0) == PREVIEW_DEBOUNCE_MS_MIN
    assert preview_debounce_ms(100) == PREVIEW_DEBOUNCE_MS_MIN
    assert PREVIEW_DEBOUNCE_MS_MIN < preview_debounce_ms(10_000) <= PREVIEW_DEBOUNCE_MS_MAX
    assert preview_debounce_ms(10_000_000) == PREVIEW_DEBOUNCE_MS_MAX
