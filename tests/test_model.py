"""Test the document model: grids, text blocks and block management."""

import unittest

from tabmark.model import (
    Document,
    EditMode,
    GridBlock,
    Selection,
    TextBlock,
    clamp_line_length,
)


class TestGridBlock(unittest.TestCase):

    def test_empty_grid_has_six_blank_tracks(self):
        grid = GridBlock.empty(50)
        self.assertEqual(len(grid.tracks), 6)
        for track in grid.tracks:
            self.assertEqual(track, ["-"] * 50)

    def test_from_rows_pads_and_truncates(self):
        grid = GridBlock.from_rows(["12", "x" * 60], 50)
        self.assertEqual(grid.row(0), "12" + "-" * 48)
        self.assertEqual(grid.row(1), "x" * 50)
        self.assertEqual(grid.row(5), "-" * 50)

    def test_full_bar_detection(self):
        grid = GridBlock.empty(50)
        grid.set_bar(7)
        self.assertTrue(grid.is_full_bar(7))
        grid.tracks[3][7] = "5"
        self.assertFalse(grid.is_full_bar(7))
        self.assertFalse(grid.is_full_bar(99))

    def test_find_bars_are_strict(self):
        grid = GridBlock.empty(50)
        grid.set_bar(4)
        grid.set_bar(10)
        self.assertEqual(grid.find_next_bar(0, 4), 10)
        self.assertEqual(grid.find_next_bar(0, 3), 4)
        self.assertEqual(grid.find_next_bar(0, 10), -1)
        self.assertEqual(grid.find_previous_bar(0, 10), 4)
        self.assertEqual(grid.find_previous_bar(0, 4), -1)

    def test_clear_column(self):
        grid = GridBlock.empty(50)
        grid.set_bar(2)
        grid.clear_column(2)
        self.assertTrue(all(track[2] == "-" for track in grid.tracks))

    def test_copy_is_independent(self):
        grid = GridBlock.from_rows(["abc"], 50)
        clone = grid.copy()
        clone.tracks[0][0] = "z"
        self.assertEqual(grid.tracks[0][0], "a")


class TestDocument(unittest.TestCase):

    def test_document_is_never_empty(self):
        doc = Document([])
        self.assertEqual(len(doc), 1)
        self.assertIsInstance(doc.blocks[0], GridBlock)
        self.assertEqual(doc.blocks[0].width, 80)

    def test_grids_are_fitted_to_line_length(self):
        doc = Document([GridBlock.from_rows(["1"], 60)], line_length=50)
        self.assertEqual(doc.blocks[0].width, 50)

    def test_delete_last_block_refused(self):
        doc = Document([GridBlock.empty(50)], line_length=50)
        self.assertFalse(doc.delete_block(0))
        self.assertEqual(len(doc), 1)

    def test_delete_out_of_range_refused(self):
        doc = Document([GridBlock.empty(50), TextBlock("x")], line_length=50)
        self.assertFalse(doc.delete_block(5))
        self.assertTrue(doc.delete_block(1))
        self.assertEqual(len(doc), 1)

    def test_move_block(self):
        text = TextBlock("title")
        grid = GridBlock.empty(50)
        doc = Document([text, grid], line_length=50)
        self.assertTrue(doc.move_block(0, 1))
        self.assertIs(doc.blocks[1], text)
        self.assertFalse(doc.move_block(1, 1))
        self.assertFalse(doc.move_block(0, 2))

    def test_resize_clamps_high(self):
        doc = Document([GridBlock.from_rows(["5"], 80), TextBlock("keep")])
        self.assertEqual(doc.resize_line_length(200), 120)
        self.assertEqual(doc.line_length, 120)
        self.assertEqual(doc.blocks[0].width, 120)
        self.assertEqual(doc.blocks[0].row(0), "5" + "-" * 119)
        self.assertEqual(doc.blocks[1].text, "keep")

    def test_resize_clamps_low_and_truncates(self):
        doc = Document([GridBlock.from_rows(["x" * 80], 80)])
        self.assertEqual(doc.resize_line_length(10), 50)
        self.assertEqual(doc.blocks[0].row(0), "x" * 50)

    def test_clamp_line_length_rejects_garbage(self):
        self.assertEqual(clamp_line_length("wide"), 80)
        self.assertEqual(clamp_line_length(None), 80)
        self.assertEqual(clamp_line_length("64"), 64)

    def test_docked_text(self):
        doc = Document([TextBlock("Intro"), GridBlock.empty(50),
                        TextBlock("two\nlines"), GridBlock.empty(50),
                        TextBlock("last")], line_length=50)
        self.assertTrue(doc.is_docked(0))
        self.assertEqual(doc.docked_grid_for_text(0), 1)
        self.assertFalse(doc.is_docked(2))
        self.assertFalse(doc.is_docked(4))
        self.assertEqual(doc.docked_grid_for_text(4), -1)

    def test_grid_navigation(self):
        doc = Document([GridBlock.empty(50), TextBlock("x"), GridBlock.empty(50)], line_length=50)
        self.assertEqual(doc.next_grid(0), 2)
        self.assertEqual(doc.next_grid(2), -1)
        self.assertEqual(doc.previous_grid(2), 0)
        self.assertEqual(doc.previous_grid(0), -1)


class TestSelectionAndMode(unittest.TestCase):

    def test_selection_normalizes_corners(self):
        sel = Selection.normalized(0, 4, 9, 1, 2, 50)
        self.assertEqual((sel.start_track, sel.end_track), (1, 4))
        self.assertEqual((sel.start_column, sel.end_column), (2, 9))
        self.assertEqual(sel.width, 8)
        self.assertEqual(sel.height, 4)
        self.assertTrue(sel.contains(0, 2, 5))
        self.assertFalse(sel.contains(1, 2, 5))

    def test_selection_clamps_to_grid(self):
        sel = Selection.normalized(0, -3, -1, 9, 70, 50)
        self.assertEqual(sel.tracks, [0, 1, 2, 3, 4, 5])
        self.assertEqual(sel.end_column, 49)

    def test_mode_cycle(self):
        self.assertEqual(EditMode.REPLACE.next(), EditMode.SHIFT)
        self.assertEqual(EditMode.SHIFT.next(), EditMode.INSERT)
        self.assertEqual(EditMode.INSERT.next(), EditMode.REPLACE)
        self.assertEqual(EditMode.INSERT.label, "Insert")


if __name__ == "__main__":
    unittest.main()
