from mbox_ingest.config.settings import Settings
from mbox_ingest.decoding.base import BaseMessageDecoder
from mbox_ingest.decoding.email_adapter import EmailLibAdapter
from mbox_ingest.decoding.mailparser_adapter import MailParserAdapter


class MessageDecoderFactory:
    """Creates the correct message decoder based on settings."""

    ADAPTERS: dict[str, type[BaseMessageDecoder]] = {
        "email": EmailLibAdapter,
        "mailparser": MailParserAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseMessageDecoder:
        engine = settings.decoder_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown decoder engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()
