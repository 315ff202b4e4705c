from opencc import OpenCC

from groupbot.models.dc_models import (
    CopywritingResponseModel,
    HoroscopeDataModel,
    HoroscopeDetailModel,
)


class TextConverter:
    """This class is used to convert simplified Chinese feed text to Taiwan traditional Chinese."""

    def __init__(self, config: str = "s2twp"):
        self._opencc = None
        self.config = config

    @property
    def opencc(self) -> OpenCC:
        # Loading the dictionaries is slow; do it on first use.
        if self._opencc is None:
            self._opencc = OpenCC(self.config)
        return self._opencc

    def to_traditional(self, text: str) -> str:
        if not text:
            return text
        return self.opencc.convert(text)

    def convert_horoscope(self, horoscope: HoroscopeDataModel) -> HoroscopeDataModel:
        """Convert every text field of one sign's horoscope

        Args:
            horoscope (HoroscopeDataModel): Horoscope as published by the feed

        Returns:
            HoroscopeDataModel: A converted copy
        """
        detail = {
            field: self.to_traditional(value)
            for field, value in horoscope.data.model_dump().items()
        }
        return horoscope.model_copy(update={"data": HoroscopeDetailModel(**detail)})

    def convert_copywritings(self, response: CopywritingResponseModel) -> CopywritingResponseModel:
        items = [
            item.model_copy(update={"content": self.to_traditional(item.content)})
            for item in response.copywritings
        ]
        return response.model_copy(update={"copywritings": items, "converted_to_traditional": True})


text_converter = TextConverter()
