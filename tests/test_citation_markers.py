from docchat.citations.markers import (
    CitationGroup,
    EmphasisSegment,
    TextSegment,
    activate,
    parse_answer,
    parse_message,
)
from docchat.events import EventChannel, NavigationIntent
from docchat.models import Message, Role


def _references(count: int):
    return [
        {"chunkId": f"c{index}", "documentId": "doc", "documentTitle": "Guide", "page": index}
        for index in range(1, count + 1)
    ]


def test_reference_group_expands_to_one_marker_per_number() -> None:
    answer = parse_answer("See **1 3** for details.", _references(3), message_id="m1")

    assert answer.segments[0] == TextSegment("See ")
    group = answer.segments[1]
    assert isinstance(group, CitationGroup)
    assert group.numbers == (1, 3)
    assert [marker.number for marker in group.markers] == [1, 3]
    assert [marker.reference["chunkId"] for marker in group.markers] == ["c1", "c3"]
    assert answer.segments[2] == TextSegment(" for details.")
    assert answer.referenced_numbers == [1, 3]


def test_out_of_range_numbers_are_dropped() -> None:
    answer = parse_answer("Claim **2 5**", _references(2), message_id="m")

    group = answer.segments[1]
    assert group.numbers == (2, 5)
    assert [marker.number for marker in group.markers] == [2]
    assert answer.marker_for(5) is None


def test_non_numeric_bold_stays_emphasis() -> None:
    answer = parse_answer("**Important** and **1a**", _references(1))

    assert answer.segments == (
        EmphasisSegment("Important"),
        TextSegment(" and "),
        EmphasisSegment("1a"),
    )
    assert answer.markers == ()


def test_marker_keys_are_unique_per_group_occurrence() -> None:
    answer = parse_answer("**1** then **1** again", _references(1), message_id="m9")

    assert [marker.key for marker in answer.markers] == ["m9:0:1", "m9:1:1"]


def test_plain_text_round_trips_unchanged() -> None:
    content = "No citations here, just text."

    answer = parse_answer(content, [])

    assert "".join(segment.text for segment in answer.segments) == content


def test_user_messages_are_not_parsed() -> None:
    message = Message(id="u1", role=Role.USER, content="What is **1**?", chunk_references=_references(1))

    answer = parse_message(message)

    assert answer.segments == (TextSegment("What is **1**?"),)
    assert answer.markers == ()


def test_model_messages_use_their_references() -> None:
    message = Message(id="a1", role=Role.MODEL, content="Answer **1**", chunk_references=_references(1))

    answer = parse_message(message)

    assert answer.marker_for(1).reference["chunkId"] == "c1"


def test_activate_publishes_navigation_intent() -> None:
    channel = EventChannel()
    received: list[NavigationIntent] = []
    channel.subscribe(NavigationIntent, received.append)
    marker = parse_answer("**2**", _references(2), message_id="m").markers[0]

    assert activate(marker, channel)

    assert received == [NavigationIntent(document_id="doc", chunk_id="c2", title="Guide", page=2)]


def test_activation_without_document_id_is_suppressed() -> None:
    channel = EventChannel()
    received: list[NavigationIntent] = []
    channel.subscribe(NavigationIntent, received.append)
    marker = parse_answer("**1**", [{"chunkId": "c1", "documentId": ""}]).markers[0]

    assert not activate(marker, channel)
    assert received == []
