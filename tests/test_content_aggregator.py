"""
Tests for ContentAggregator.

Run with: pytest tests/test_content_aggregator.py -v
"""

import pytest

from studentprojects.matrix.transport import MatrixRequestError
from studentprojects.rendering import BlockRendererRegistry
from studentprojects.services.content_aggregator import ContentAggregator, parse_block_name

PROJECT = "!project:example.org"


@pytest.fixture
def aggregator(room_graph, message_history):
    return ContentAggregator(room_graph, message_history, BlockRendererRegistry.default())


@pytest.fixture
def english_space(room_graph):
    room_graph.add_space(PROJECT, "Soft Robotics", children=["!en"])
    room_graph.add_space("!en", "en")
    return "!en"


def _add_block(room_graph, language_space, room_id, name):
    room_graph.add_space(room_id, name)
    room_graph.link(language_space, room_id)


def test_parse_block_name_splits_on_first_separator():
    assert parse_block_name("01_text") == ("01", "text")
    assert parse_block_name("02_image_gallery") == ("02", "image_gallery")
    assert parse_block_name("nounderscore") is None


class TestAggregate:
    @pytest.mark.asyncio
    async def test_text_and_image_blocks(self, aggregator, room_graph, message_history, english_space):
        _add_block(room_graph, english_space, "!b2", "02_image")
        _add_block(room_graph, english_space, "!b1", "01_text")
        message_history.add_message(
            "!b1", {"msgtype": "m.text", "body": "Hello", "format": "org.matrix.custom.html", "formatted_body": "<p>Hello</p>"}
        )
        message_history.add_message("!b2", {"msgtype": "m.image", "body": "robot.jpg", "url": "mxc://example.org/abc"})

        blocks = await aggregator.aggregate(PROJECT, "en")

        assert [block.block_id for block in blocks] == ["01", "02"]
        text, image = blocks
        assert text.type == "text"
        assert text.content == "Hello"
        assert text.formatted_content == "<p>Hello</p>"
        assert image.type == "image"
        assert image.content == "https://matrix.example.org/_matrix/media/v3/download/example.org/abc"
        assert image.content in image.formatted_content
        assert image.error is None

    @pytest.mark.asyncio
    async def test_only_latest_message_is_used(self, aggregator, room_graph, message_history, english_space):
        _add_block(room_graph, english_space, "!b1", "01_text")
        message_history.add_message("!b1", {"msgtype": "m.text", "body": "old", "formatted_body": "old"})
        message_history.add_message("!b1", {"msgtype": "m.text", "body": "new", "formatted_body": "new"})

        blocks = await aggregator.aggregate(PROJECT, "en")

        assert blocks[0].content == "new"
        assert message_history.requests[0]["limit"] == 1
        assert message_history.requests[0]["event_types"] == ["m.room.message"]

    @pytest.mark.asyncio
    async def test_missing_language_returns_empty(self, aggregator, room_graph, message_history, english_space):
        _add_block(room_graph, english_space, "!b1", "01_text")
        message_history.add_message("!b1", {"msgtype": "m.text", "body": "Hello"})

        assert await aggregator.aggregate(PROJECT, "de") == []

    @pytest.mark.asyncio
    async def test_rooms_without_messages_are_skipped(self, aggregator, room_graph, message_history, english_space):
        _add_block(room_graph, english_space, "!b1", "01_text")
        _add_block(room_graph, english_space, "!b2", "02_text")
        message_history.add_message("!b2", {"msgtype": "m.text", "body": "Only me"})

        blocks = await aggregator.aggregate(PROJECT, "en")

        assert [block.block_id for block in blocks] == ["02"]

    @pytest.mark.asyncio
    async def test_unregistered_type_reports_error_for_that_block_only(
        self, aggregator, room_graph, message_history, english_space
    ):
        _add_block(room_graph, english_space, "!b1", "01_text")
        _add_block(room_graph, english_space, "!b3", "03_quote")
        message_history.add_message("!b1", {"msgtype": "m.text", "body": "Hi", "formatted_body": "<b>Hi</b>"})
        message_history.add_message("!b3", {"msgtype": "m.text", "body": "To be or not to be"})

        blocks = await aggregator.aggregate(PROJECT, "en")

        text, quote = blocks
        assert text.formatted_content == "<b>Hi</b>"
        assert text.error is None
        assert quote.type == "quote"
        assert quote.formatted_content == ""
        assert "quote" in quote.error

    @pytest.mark.asyncio
    async def test_plain_text_without_formatted_body_is_escaped(
        self, aggregator, room_graph, message_history, english_space
    ):
        _add_block(room_graph, english_space, "!b1", "01_text")
        message_history.add_message("!b1", {"msgtype": "m.text", "body": "a < b"})

        blocks = await aggregator.aggregate(PROJECT, "en")

        assert blocks[0].formatted_content == "a &lt; b"

    @pytest.mark.asyncio
    async def test_order_does_not_depend_on_response_arrival(
        self, aggregator, room_graph, message_history, english_space
    ):
        for index in range(1, 6):
            room_id = f"!b{index}"
            _add_block(room_graph, english_space, room_id, f"0{index}_code")
            message_history.add_message(room_id, {"msgtype": "m.text", "body": f"block {index}"})
            # Earlier blocks answer later.
            message_history.delays[room_id] = (6 - index) * 0.01

        first = await aggregator.aggregate(PROJECT, "en")
        second = await aggregator.aggregate(PROJECT, "en")

        assert [block.block_id for block in first] == ["01", "02", "03", "04", "05"]
        assert [block.model_dump() for block in first] == [block.model_dump() for block in second]

    @pytest.mark.asyncio
    async def test_rooms_without_block_name_are_ignored(
        self, aggregator, room_graph, message_history, english_space
    ):
        _add_block(room_graph, english_space, "!misc", "notes")
        message_history.add_message("!misc", {"msgtype": "m.text", "body": "scratch"})

        assert await aggregator.aggregate(PROJECT, "en") == []

    @pytest.mark.asyncio
    async def test_refused_block_room_is_omitted(self, aggregator, room_graph, message_history, english_space):
        _add_block(room_graph, english_space, "!b1", "01_text")
        _add_block(room_graph, english_space, "!b2", "02_text")
        message_history.add_message("!b1", {"msgtype": "m.text", "body": "Still here"})
        message_history.errors["!b2"] = MatrixRequestError("forbidden", status_code=403, errcode="M_FORBIDDEN")

        blocks = await aggregator.aggregate(PROJECT, "en")

        assert [block.block_id for block in blocks] == ["01"]
        assert blocks[0].formatted_content == "Still here"
