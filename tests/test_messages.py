"""Tests for inbound message parsing and outbound payloads."""

from nexusbot.whatsapp.messages import WAMessage, image_content, text_content


class TestWAMessage:

    def test_conversation_text(self):
        msg = WAMessage.from_dict({
            "key": {"remoteJid": "123@s.whatsapp.net", "fromMe": False, "id": "M1"},
            "message": {"conversation": "oi"},
        })
        assert msg.text == "oi"
        assert msg.chat_id == "123@s.whatsapp.net"
        assert msg.message_id == "M1"
        assert not msg.from_me
        assert not msg.has_image

    def test_extended_text(self):
        msg = WAMessage.from_dict({"message": {"extendedTextMessage": {"text": "link"}}})
        assert msg.text == "link"

    def test_image_caption_is_text(self):
        msg = WAMessage.from_dict({"message": {"imageMessage": {"caption": "legenda"}}})
        assert msg.has_image
        assert msg.text == "legenda"

    def test_image_without_caption(self):
        msg = WAMessage.from_dict({"message": {"imageMessage": {"mimetype": "image/jpeg"}}})
        assert msg.has_image
        assert msg.text is None

    def test_empty_payload(self):
        msg = WAMessage.from_dict(None)
        assert msg.text is None
        assert msg.chat_id is None
        assert not msg.from_me


class TestPayloads:

    def test_text(self):
        assert text_content("oi") == {"text": "oi"}

    def test_image_url(self):
        assert image_content("https://x/y.jpg", "cap") == {"image": {"url": "https://x/y.jpg"}, "caption": "cap"}

    def test_image_raw_base64(self):
        assert image_content("QUJD") == {"image": {"data": "QUJD"}}

    def test_image_data_uri_prefix_stripped(self):
        assert image_content("data:image/png;base64,QUJD", "c")["image"] == {"data": "QUJD"}
