import pytest

from genai_gateway import FileManager, HarmBlockThreshold, HarmCategory, LiveAPI, SafetySetting
from genai_gateway.domain.exceptions import LiveApiUnavailableError


def test_file_manager_returns_stub_uris():
    fm = FileManager("key")
    uploaded = fm.upload_file("images/cat.png", mime_type="image/png", display_name="cat")
    assert uploaded.file.uri == "genai-preview://stub/images/cat.png"
    assert uploaded.file.name == "cat"
    assert fm.get_file("cat").file.uri == "genai-preview://stub/cat"


def test_live_api_is_unavailable():
    with pytest.raises(LiveApiUnavailableError):
        LiveAPI().connect()


def test_safety_setting_from_dict():
    setting = SafetySetting.from_dict(
        {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_ONLY_HIGH"}
    )
    assert setting.category is HarmCategory.HARM_CATEGORY_HARASSMENT
    assert setting.threshold is HarmBlockThreshold.BLOCK_ONLY_HIGH
