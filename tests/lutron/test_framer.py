from radiora.lutron.transport import LineFramer


def test_complete_lines_are_split():
    framer = LineFramer()
    assert framer.feed(b"~OUTPUT,1,1,0.00\r\n~OUTPUT,2,1,5.00\r\n") == [
        "~OUTPUT,1,1,0.00",
        "~OUTPUT,2,1,5.00",
    ]
    assert framer.pending == ""


def test_partial_line_is_reassembled_across_reads():
    framer = LineFramer()
    assert framer.feed(b"~OUTPUT,1,1,") == []
    assert framer.feed(b"75.00\r\n~OUT") == ["~OUTPUT,1,1,75.00"]
    assert framer.pending == "~OUT"
    assert framer.feed(b"PUT,2,1,0.00\r\n") == ["~OUTPUT,2,1,0.00"]


def test_prompts_are_released_without_terminator():
    framer = LineFramer()
    assert framer.feed(b"\0login: ") == ["login: "]
    assert framer.feed(b"password: ") == ["password: "]
    assert framer.feed(b"\r\nGNET> ") == ["", "GNET> "]


def test_prompt_split_across_reads():
    framer = LineFramer()
    assert framer.feed(b"pass") == []
    assert framer.feed(b"word: ") == ["password: "]


def test_reset_discards_fragment():
    framer = LineFramer()
    framer.feed(b"~OUTPUT,1")
    framer.reset()
    assert framer.feed(b"GNET> ") == ["GNET> "]


def test_prompt_followed_by_status_in_one_read():
    framer = LineFramer()
    assert framer.feed(b"GNET> ~OUTPUT,5,1,75.00\r\n") == ["GNET> ", "~OUTPUT,5,1,75.00"]


def test_repeated_prompts_before_status():
    framer = LineFramer()
    assert framer.feed(b"GNET> GNET> ~OUTPUT,5,1,0") == []
    assert framer.feed(b".00\r\n") == ["GNET> ", "GNET> ", "~OUTPUT,5,1,0.00"]
