from groupbot.converter import TextConverter
from groupbot.models.dc_models import CopywritingResponseModel, HoroscopeDataModel


def test_simplified_to_traditional():
    converter = TextConverter()

    assert converter.to_traditional("这是测试") == "這是測試"
    assert converter.to_traditional("") == ""


def test_convert_horoscope_touches_only_text():
    converter = TextConverter()
    horoscope = HoroscopeDataModel.model_validate(
        {"constellation": "leo", "success": True, "data": {"notice": "保持耐心", "yi": "运动", "lucky_number": 7}}
    )

    converted = converter.convert_horoscope(horoscope)

    assert converted.data.yi == "運動"
    assert converted.data.lucky_number == "7"
    assert converted.constellation == "leo"
    assert horoscope.data.yi == "运动"


def test_convert_copywritings_marks_the_feed():
    converter = TextConverter()
    response = CopywritingResponseModel.model_validate(
        {"convertedToTraditional": False, "copywritings": [{"id": 1, "content": "这是测试"}]}
    )

    converted = converter.convert_copywritings(response)

    assert converted.converted_to_traditional is True
    assert [item.content for item in converted.copywritings] == ["這是測試"]
