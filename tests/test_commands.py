"""Test key handling through the command registry."""

import unittest
from unittest.mock import Mock, patch

from tabmark.app import TabApp
from tabmark.clipboard import ClipboardRect
from tabmark.keyboard import KeyboardHandler
from tabmark.model import Document, EditMode, GridBlock, TextBlock

L = 50


def grid(*rows):
    return GridBlock.from_rows(list(rows), L)


class CommandTestCase(unittest.TestCase):

    def setUp(self):
        self.terminal = Mock()
        self.terminal.height = 20
        self.terminal.width = 80
        self.store = Mock()
        self.app = TabApp(store=self.store, terminal=self.terminal)
        self.parser = KeyboardHandler(self.terminal)

    def load(self, *blocks):
        self.app.editor.restore(Document(list(blocks), line_length=L))

    def press(self, *tokens):
        for token in tokens:
            self.app.handle_key_event(self.parser.parse_key(token))

    @property
    def editor(self):
        return self.app.editor


class TestMovement(CommandTestCase):

    def test_arrows_move_and_clear_selection(self):
        self.load(grid())
        self.press("<Shift-RIGHT>", "<Shift-RIGHT>")
        self.assertIsNotNone(self.editor.selection)
        self.press("<RIGHT>")
        self.assertIsNone(self.editor.selection)
        self.assertEqual(self.editor.cursor.column, 3)

    def test_down_crosses_into_next_block(self):
        self.load(grid(), TextBlock("text"), grid())
        self.editor.set_cursor(0, 5, 4)
        self.press("<DOWN>")
        self.assertEqual(self.editor.cursor.block_index, 1)
        self.press("<DOWN>")
        self.assertEqual((self.editor.cursor.block_index, self.editor.cursor.track_index), (2, 0))
        self.assertEqual(self.editor.cursor.column, 4)

    def test_up_enters_previous_grid_on_last_track(self):
        self.load(grid(), grid())
        self.editor.set_cursor(1, 0, 0)
        self.press("<UP>")
        self.assertEqual((self.editor.cursor.block_index, self.editor.cursor.track_index), (0, 5))
        self.editor.set_cursor(0, 0, 0)
        self.press("<UP>")
        self.assertEqual((self.editor.cursor.block_index, self.editor.cursor.track_index), (0, 0))

    def test_home_end(self):
        self.load(grid())
        self.editor.set_cursor(0, 0, 10)
        self.press("<END>")
        self.assertEqual(self.editor.cursor.column, L - 1)
        self.press("<HOME>")
        self.assertEqual(self.editor.cursor.column, 0)

    def test_tab_jumps_to_bar_then_next_grid(self):
        g = grid()
        g.set_bar(8)
        self.load(g, TextBlock("x"), grid())
        self.press("<TAB>")
        self.assertEqual(self.editor.cursor.column, 8)
        self.press("<TAB>")
        self.assertEqual((self.editor.cursor.block_index, self.editor.cursor.column), (2, 0))
        self.press("<TAB>")
        self.assertEqual(self.app.status_message, "No bar or block ahead")

    def test_page_keys_move_between_grids(self):
        self.load(grid(), TextBlock("x"), grid())
        self.press("<PAGEDOWN>")
        self.assertEqual(self.editor.cursor.block_index, 2)
        self.press("<PAGEUP>")
        self.assertEqual(self.editor.cursor.block_index, 0)


class TestEditingKeys(CommandTestCase):

    def test_typing_uses_edit_mode(self):
        self.load(grid("AB"))
        self.press("<INSERT>")
        self.assertEqual(self.editor.mode, EditMode.SHIFT)
        self.assertEqual(self.app.status_message, "Shift mode")
        self.press("x")
        self.assertEqual(self.editor.blocks[0].row(0)[:3], "xAB")

    def test_replace_mode_rolls_to_next_block(self):
        self.load(grid(), grid())
        self.editor.set_cursor(0, 3, L - 1)
        self.press("5")
        self.assertEqual(self.editor.blocks[0].tracks[3][L - 1], "5")
        self.assertEqual((self.editor.cursor.block_index, self.editor.cursor.track_index,
                          self.editor.cursor.column), (1, 3, 0))

    def test_enter_writes_bar_and_moves_down(self):
        self.load(grid())
        self.editor.set_cursor(0, 1, 6)
        self.press("<Ctrl-j>")
        self.assertTrue(self.editor.blocks[0].is_full_bar(6))
        self.assertEqual((self.editor.cursor.track_index, self.editor.cursor.column), (2, 6))

    def test_backspace_and_delete(self):
        self.load(grid("ABC"))
        self.editor.set_cursor(0, 0, 2)
        self.press("<BACKSPACE>")
        self.assertEqual(self.editor.blocks[0].row(0)[:3], "AB-")
        self.assertEqual(self.editor.cursor.column, 1)
        self.press("<DELETE>")
        self.assertEqual(self.editor.blocks[0].row(0)[:3], "A--")

    def test_typing_in_text_block(self):
        self.load(TextBlock("Ver"), grid())
        self.press("s", "e", "<BACKSPACE>", "e")
        self.assertEqual(self.editor.blocks[0].text, "Verse")
        self.press("<Ctrl-j>")
        self.assertEqual(self.editor.blocks[0].text, "Verse\n")

    def test_undo_key(self):
        self.load(grid())
        self.press("<Ctrl-z>")
        self.assertEqual(self.app.status_message, "Nothing to undo")
        self.press("7", "<Ctrl-z>")
        self.assertEqual(self.editor.blocks[0].row(0)[0], "-")
        self.assertEqual(self.app.status_message, "Undone")

    def test_clear_cells(self):
        self.load(grid("ABCD"))
        self.press("<Shift-RIGHT>", "<Ctrl-k>")
        self.assertEqual(self.editor.blocks[0].row(0)[:4], "--CD")


class TestClipboardKeys(CommandTestCase):

    @patch("tabmark.commands.ClipboardManager")
    def test_copy_and_paste(self, manager):
        self.load(grid("ABCD"))
        self.press("<Shift-RIGHT>", "<Ctrl-c>")
        self.assertEqual(self.app.status_message, "Selection copied")
        manager.copy_rect.assert_called_once()
        self.editor.set_cursor(0, 1, 0)
        self.press("<Ctrl-v>")
        self.assertEqual(self.editor.blocks[0].row(1)[:2], "AB")
        manager.paste_rect.assert_not_called()

    @patch("tabmark.commands.ClipboardManager")
    def test_cut(self, manager):
        self.load(grid("ABCD"))
        self.press("<Ctrl-x>")
        self.assertEqual(self.app.status_message, "No selection")
        self.press("<Shift-RIGHT>", "<Ctrl-x>")
        self.assertEqual(self.editor.blocks[0].row(0)[:4], "CD--")
        self.assertEqual(self.app.status_message, "Selection cut")

    @patch("tabmark.commands.ClipboardManager")
    def test_paste_falls_back_to_system_clipboard(self, manager):
        manager.paste_rect.return_value = ClipboardRect(2, 1, [list("99")])
        self.load(grid())
        self.press("<Ctrl-v>")
        self.assertEqual(self.editor.blocks[0].row(0)[:2], "99")

    @patch("tabmark.commands.ClipboardManager")
    def test_paste_with_empty_clipboards(self, manager):
        manager.paste_rect.return_value = None
        self.load(grid())
        self.press("<Ctrl-v>")
        self.assertEqual(self.app.status_message, "Clipboard is empty")


class TestBlockKeys(CommandTestCase):

    def test_new_blocks(self):
        self.load(grid())
        self.press("<Ctrl-n>")
        self.assertEqual(len(self.editor.blocks), 2)
        self.assertEqual(self.editor.cursor.block_index, 1)
        self.press("<Ctrl-o>", "H", "i")
        self.assertEqual(self.editor.blocks[2].text, "Hi")

    def test_delete_block_refused_for_last(self):
        self.load(grid())
        self.press("<Esc+BACKSPACE>")
        self.assertEqual(self.app.status_message, "Cannot delete the only block")
        self.assertEqual(len(self.editor.blocks), 1)

    def test_move_block(self):
        self.load(TextBlock("a"), grid())
        self.editor.set_cursor(1, 0, 0)
        self.press("<Esc+UP>")
        self.assertIsInstance(self.editor.blocks[0], GridBlock)
        self.assertEqual(self.editor.cursor.block_index, 0)

    def test_pad_caption(self):
        self.load(TextBlock("Am"), grid())
        self.editor.set_cursor(1, 0, 6)
        self.press("<Ctrl-p>")
        self.assertEqual(self.editor.blocks[0].text, "Am    ")


class TestSystemKeys(CommandTestCase):

    def test_quit(self):
        self.app.running = True
        self.press("<Ctrl-q>")
        self.assertFalse(self.app.running)

    def test_line_length_prompt(self):
        self.load(grid())
        self.press("<Ctrl-l>")
        self.assertEqual(self.app.prompt_mode, "line_length")
        self.assertEqual(self.app.prompt_input, str(L))
        self.press("<BACKSPACE>", "<BACKSPACE>", "9", "0", "<Ctrl-j>")
        self.assertIsNone(self.app.prompt_mode)
        self.assertEqual(self.editor.line_length, 90)
        self.assertEqual(self.app.status_message, "Line length 90")

    def test_prompt_cancel(self):
        self.press("<Ctrl-r>", "x", "<ESC>")
        self.assertIsNone(self.app.prompt_mode)
        self.assertEqual(self.app.status_message, "Cancelled")

    @patch("tabmark.app.export_to_file", return_value="Riff.txt")
    def test_export_prompt_defaults_to_title(self, export):
        self.load(TextBlock("Riff"), grid())
        self.press("<Ctrl-s>")
        self.assertEqual(self.app.prompt_input, "Riff.txt")
        self.press("<Ctrl-j>")
        export.assert_called_once_with(self.editor, "Riff.txt")
        self.assertEqual(self.app.status_message, "Exported to Riff.txt")

    def test_clear_all_asks_first(self):
        self.load(TextBlock("Intro"), grid("5"))
        self.press("<Ctrl-u>")
        self.assertEqual(self.app.prompt_mode, "clear_all")
        self.press("n", "<Ctrl-j>")
        self.assertEqual(self.app.status_message, "Cancelled")
        self.assertEqual(len(self.editor.blocks), 2)

        self.press("<Ctrl-u>", "y", "<Ctrl-j>")
        self.assertEqual(self.app.status_message, "Document cleared")
        self.assertEqual(len(self.editor.blocks), 1)
        self.assertEqual(self.editor.blocks[0].row(0), "-" * L)
        self.press("<Ctrl-z>")
        self.assertEqual(self.editor.blocks[0].text, "Intro")

    @patch("tabmark.app.ClipboardManager")
    def test_empty_import_prompt_reads_clipboard(self, manager):
        manager.paste_text.return_value = "Riff\ne|5\nB|\nG|\nD|\nA|\nE|\n"
        self.load(grid("9"))
        self.press("<Ctrl-r>", "<Ctrl-j>")
        self.assertEqual(self.app.status_message, "Imported from clipboard")
        self.assertEqual(self.editor.blocks[0].text, "Riff")
        self.assertEqual(self.editor.blocks[1].row(0)[:2], "5-")

    @patch("tabmark.app.ClipboardManager")
    def test_import_from_empty_clipboard(self, manager):
        manager.paste_text.return_value = None
        self.load(grid("9"))
        self.press("<Ctrl-r>", "<Ctrl-j>")
        self.assertEqual(self.app.status_message, "Clipboard is empty")
        self.assertEqual(self.editor.blocks[0].row(0)[0], "9")

    def test_non_printing_key_is_ignored(self):
        self.load(grid())
        self.press("\u200b")
        self.assertEqual(self.editor.blocks[0].row(0), "-" * L)
        self.assertEqual(len(self.editor.undo_manager), 0)

    def test_note_key(self):
        self.load(grid("5"))
        self.press("<Ctrl-w>")
        self.assertEqual(self.app.status_message, "Note: A")

    def test_help_dismissed_by_any_key(self):
        self.press("<F1>")
        self.assertTrue(self.app.help_visible)
        self.press("x")
        self.assertFalse(self.app.help_visible)
        self.assertEqual(self.editor.blocks[0].tracks[0][0], "-")


if __name__ == "__main__":
    unittest.main()
