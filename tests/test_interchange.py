"""Test the plain-text interchange format."""

from tabmark.editing import TabEditor
from tabmark.interchange import (
    export_filename,
    extract_title,
    format_blocks,
    is_grid_sequence,
    parse_text,
    sanitize_filename,
)
from tabmark.model import Document, GridBlock, TextBlock

L = 50


def labelled(rows, width=L):
    labels = ["e|", "B|", "G|", "D|", "A|", "E|"]
    return [label + row.ljust(width, "-") for label, row in zip(labels, rows)]


def test_format_grid_lines_are_labelled():
    text = format_blocks([GridBlock.from_rows(["0", "1"], L)])
    lines = text.split("\n")
    assert lines[0] == "e|0" + "-" * (L - 1)
    assert lines[1] == "B|1" + "-" * (L - 1)
    assert lines[5].startswith("E|")
    assert text.endswith("\n")
    assert len(lines) == 7


def test_docked_text_sits_directly_above_grid():
    blocks = [TextBlock("Verse 1"), GridBlock.empty(L), TextBlock("Outro\nfade"), GridBlock.empty(L)]
    lines = format_blocks(blocks).split("\n")
    assert lines[0] == "Verse 1"
    assert lines[1].startswith("e|")
    assert lines[7] == ""
    assert lines[8] == "Outro"
    assert lines[9] == "fade"
    assert lines[10] == ""
    assert lines[11].startswith("e|")


def test_is_grid_sequence():
    assert is_grid_sequence(labelled([""] * 6))
    assert not is_grid_sequence(labelled([""] * 6)[:5])
    assert not is_grid_sequence(["x|"] + labelled([""] * 6)[1:])


def test_parse_round_trip_structure():
    blocks = [TextBlock("Song\n\nby someone"), TextBlock("Intro"),
              GridBlock.from_rows(["0-2", "", "", "", "", "|"], L), TextBlock("end")]
    parsed, length = parse_text(format_blocks(blocks), L)
    assert length == L
    assert [type(b).__name__ for b in parsed] == ["TextBlock", "TextBlock", "GridBlock", "TextBlock"]
    assert parsed[0].text == "Song\n\nby someone"
    assert parsed[1].text == "Intro"
    assert parsed[2].row(0)[:3] == "0-2"
    assert parsed[3].text == "end"


def test_parse_grows_line_length_to_longest_grid():
    content = "\n".join(labelled(["5"] * 6, width=70)) + "\n"
    blocks, length = parse_text(content, L)
    assert length == 70
    assert blocks[0].width == 70


def test_parse_clamps_line_length():
    content = "\n".join(labelled(["5"] * 6, width=150)) + "\n"
    blocks, length = parse_text(content, L)
    assert length == 120
    assert blocks[0].width == 120


def test_parse_pads_short_lines_and_normalizes_cr():
    content = "e|1\r\nB|\r\nG|3\r\nD|\r\nA|\r\nE|6\r\n"
    blocks, length = parse_text(content, L)
    assert length == L
    assert blocks[0].row(0) == "1" + "-" * (L - 1)
    assert blocks[0].row(5)[0] == "6"


def test_parse_empty_content_gives_one_grid():
    blocks, length = parse_text("\n\n   \n", 80)
    assert len(blocks) == 1
    assert isinstance(blocks[0], GridBlock)
    assert length == 80


def test_parse_docked_line_split_after_blank():
    content = "Title\nsubtitle\n\nChorus\n" + "\n".join(labelled([""] * 6)) + "\n"
    blocks, _ = parse_text(content, L)
    assert [b.text for b in blocks[:2]] == ["Title\nsubtitle", "Chorus"]
    assert isinstance(blocks[2], GridBlock)


def test_parse_text_without_blank_stays_together():
    content = "line one\nline two\n" + "\n".join(labelled([""] * 6)) + "\n"
    blocks, _ = parse_text(content, L)
    assert blocks[0].text == "line one\nline two"
    assert isinstance(blocks[1], GridBlock)


def test_extract_title():
    assert extract_title([TextBlock("My Song\n\nnotes"), GridBlock.empty(L)]) == "My Song"
    assert extract_title([TextBlock("Riff"), GridBlock.empty(L)]) == "Riff"
    assert extract_title([GridBlock.empty(L)]) is None
    assert extract_title([TextBlock("a\nb")]) is None


def test_sanitize_filename():
    assert sanitize_filename('AC/DC: "Back"  in?Black') == "ACDC Back inBlack"
    assert sanitize_filename("///") == "guitar-tab"
    assert len(sanitize_filename("x" * 300)) == 200


def test_export_filename():
    assert export_filename([TextBlock("Riff"), GridBlock.empty(L)]) == "Riff.txt"
    assert export_filename([GridBlock.empty(L)]) == "guitar-tab.txt"


def test_editor_import_is_undoable():
    editor = TabEditor(Document([GridBlock.from_rows(["9"], L)], line_length=L))
    content = "Intro\n" + "\n".join(labelled(["1"] * 6)) + "\n"
    assert editor.import_text(content)
    assert len(editor.blocks) == 2
    assert editor.export_text() == content
    editor.undo()
    assert editor.blocks[0].row(0)[0] == "9"
