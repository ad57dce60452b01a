import json

from storyframe.ndjson import LineBuffer, decode_line, encode_line
from storyframe.pipeline import SceneOutcome
from storyframe.progress import SceneProgress, percent


def line(**record):
    return encode_line(record)


def test_encode_line_is_one_json_object_per_line():
    data = encode_line({"index": 0, "total": 3, "status": "ok", "url": "https://x.test/é.png"})
    assert data.endswith(b"\n")
    assert data.count(b"\n") == 1
    assert json.loads(data) == {"index": 0, "total": 3, "status": "ok", "url": "https://x.test/é.png"}


def test_outcome_survives_a_line_round_trip():
    outcome = SceneOutcome(index=1, total=3, status="error", error="Upstream API error (500): boom")
    assert SceneOutcome.from_dict(decode_line(encode_line(outcome.to_dict()).decode())) == outcome


def test_decode_line_skips_garbage():
    assert decode_line("") is None
    assert decode_line("   ") is None
    assert decode_line("{not json") is None
    assert decode_line("[1, 2]") is None


def test_line_buffer_holds_partial_lines():
    buf = LineBuffer()
    assert buf.feed(b'{"a":1}\n{"b"') == ['{"a":1}']
    assert buf.feed(b":2}\n") == ['{"b":2}']
    assert buf.feed(b'{"c":3}') == []
    assert buf.flush() == '{"c":3}'


def test_line_buffer_split_multibyte_character():
    data = '{"u":"é"}\n'.encode("utf-8")
    cut = data.index(b"\xc3") + 1
    buf = LineBuffer()
    assert buf.feed(data[:cut]) == []
    assert buf.feed(data[cut:]) == ['{"u":"é"}']


def test_percent_rounds_half_up():
    assert percent(0, 8) == 0
    assert percent(1, 8) == 13
    assert percent(1, 3) == 33
    assert percent(2, 3) == 67
    assert percent(3, 3) == 100


def test_slots_updated_by_index_counter_by_arrival():
    updates = []
    progress = SceneProgress(3, on_update=lambda slot, p: updates.append((slot.index, p.completed, p.percent)))
    assert [s.state for s in progress.slots] == ["pending"] * 3

    progress.feed(line(index=2, total=3, status="ok", url="https://x.test/2.png"))
    assert progress.slots[2].state == "ok"
    assert progress.slots[0].state == "pending"
    assert progress.completed == 1

    progress.feed(line(index=0, total=3, status="error", error="boom"))
    progress.feed(line(index=1, total=3, status="ok", url="https://x.test/1.png"))

    assert updates == [(2, 1, 33), (0, 2, 67), (1, 3, 100)]
    assert progress.slots[0].error == "boom"
    assert [o.index for o in progress.finish()] == [1, 2]


def test_chunk_boundaries_do_not_matter():
    body = b"".join(
        line(index=i, total=4, status="ok", url=f"https://x.test/{i}.png") for i in range(4)
    )
    progress = SceneProgress(4)
    for i in range(0, len(body), 7):
        progress.feed(body[i:i + 7])
    assert progress.completed == 4
    assert [o.url for o in progress.finish()] == [f"https://x.test/{i}.png" for i in range(4)]


def test_malformed_lines_are_skipped():
    progress = SceneProgress(2)
    progress.feed(b"garbage\n")
    progress.feed(b'{"index": "zero", "total": 2, "status": "ok"}\n')
    progress.feed(b'{"index": 9, "total": 2, "status": "ok", "url": "https://x.test/9.png"}\n')
    progress.feed(line(index=0, total=2, status="ok", url="https://x.test/0.png"))
    assert progress.completed == 1
    assert progress.slots[0].state == "ok"


def test_trailing_line_without_newline_is_parsed_at_end():
    progress = SceneProgress(2)
    progress.feed(line(index=0, total=2, status="ok", url="https://x.test/0.png"))
    progress.feed(b'{"index": 1, "total": 2, "status": "ok", "url": "https://x.test/1.png"}')
    assert progress.completed == 1
    results = progress.finish()
    assert progress.completed == 2
    assert len(results) == 2
    assert progress.finish() == results


def test_all_failed_has_no_results():
    progress = SceneProgress(2)
    progress.feed(line(index=0, total=2, status="error", error="a"))
    progress.feed(line(index=1, total=2, status="error", error="b"))
    assert progress.finish() == []
    assert not progress.has_results
    assert progress.percent == 100


def test_json_values_that_are_not_objects_are_skipped():
    progress = SceneProgress(2)
    progress.feed(b"null\n5\n\"text\"\n")
    progress.feed(line(index=1, total=2, status="ok", url="https://x.test/1.png"))
    assert progress.completed == 1
    assert progress.slots[1].state == "ok"
