import pytest


def test_default_config():
    from docx_stream.partition.utils.config import env_config

    assert env_config.DOCX_STREAM_MAX_IMAGE_SIZE_BYTES == 10 * 1024 * 1024
    assert env_config.DOCX_STREAM_LARGE_FILE_BYTES == 100 * 1024 * 1024
    assert env_config.DOCX_STREAM_NORMALIZE_WHITESPACE is True


def test_env_override(monkeypatch):
    monkeypatch.setenv("DOCX_STREAM_MAX_IMAGE_SIZE_BYTES", "2048")
    from docx_stream.partition.utils.config import env_config

    assert env_config.DOCX_STREAM_MAX_IMAGE_SIZE_BYTES == 2048


def test_empty_env_value_falls_back_to_the_default(monkeypatch):
    monkeypatch.setenv("DOCX_STREAM_LARGE_FILE_BYTES", "")
    from docx_stream.partition.utils.config import env_config

    assert env_config.DOCX_STREAM_LARGE_FILE_BYTES == 100 * 1024 * 1024


@pytest.mark.parametrize(
    ("value", "expected_value"),
    [("true", True), ("1", True), ("T", True), ("false", False), ("0", False), ("no", False)],
)
def test_env_bool_override(monkeypatch, value: str, expected_value: bool):
    monkeypatch.setenv("DOCX_STREAM_NORMALIZE_WHITESPACE", value)
    from docx_stream.partition.utils.config import env_config

    assert env_config.DOCX_STREAM_NORMALIZE_WHITESPACE is expected_value


def test_env_int_override_must_be_an_integer(monkeypatch):
    monkeypatch.setenv("DOCX_STREAM_MAX_IMAGE_SIZE_BYTES", "ten")
    from docx_stream.partition.utils.config import env_config

    with pytest.raises(ValueError):
        env_config.DOCX_STREAM_MAX_IMAGE_SIZE_BYTES
