import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from mdkb.core.tasks import TASK_INDEX_MARK, count_tasks, toggle_task
from mdkb.services.markdown_renderer import PALETTES, MarkdownRenderer, add_task_checkboxes


def test_renders_markdown():
    html = MarkdownRenderer().render_body("# Title\n\nSome *text*.")
    assert "<h1" in html
    assert "<em>text</em>" in html


def test_scripts_are_stripped():
    html = MarkdownRenderer().render_body("hi <script>alert(1)</script>")
    assert "<script>" not in html


def test_task_checkboxes_numbered_in_order():
    html = MarkdownRenderer().render_body("- [ ] one\n- [x] two\n")
    assert 'data-task="0"> one' in html
    assert 'data-task="1" checked> two' in html


def test_task_checkboxes_not_inside_code():
    mark = TASK_INDEX_MARK
    html = add_task_checkboxes(
        f"<pre><code>- [ ]{mark}0{mark} x</code></pre><ul><li>[ ]{mark}1{mark} y</li></ul>"
    )
    assert html.count('type="checkbox"') == 1
    assert 'data-task="1"> y' in html
    assert mark not in html
    assert "- [ ] x" in html


def test_page_uses_theme_palette():
    page = MarkdownRenderer(theme="dark").render_page("x")
    assert PALETTES["dark"].background in page
    assert "task://" in page

    fallback = MarkdownRenderer(theme="purple").render_page("x")
    assert PALETTES["light"].background in fallback


QUOTED_TASK = "> - [ ] quoted\n\n- [ ] real\n"
INDENTED_CODE_TASK = "para\n\n    - [ ] code\n\n- [ ] real\n"


def test_checkbox_count_matches_editor_tasks():
    renderer = MarkdownRenderer()
    for doc in (QUOTED_TASK, INDENTED_CODE_TASK):
        html = renderer.render_body(doc)
        assert html.count('class="task"') == count_tasks(doc)
        assert TASK_INDEX_MARK not in html


def test_quoted_task_checkbox_toggles_quoted_line():
    html = MarkdownRenderer().render_body(QUOTED_TASK)
    assert 'data-task="0"> quoted' in html
    assert 'data-task="1"> real' in html

    out, changed = toggle_task(QUOTED_TASK, 0, True)
    assert changed
    assert out == "> - [x] quoted\n\n- [ ] real\n"


def test_indented_code_task_gets_no_checkbox():
    html = MarkdownRenderer().render_body(INDENTED_CODE_TASK)
    assert 'data-task="0"> real' in html
    assert "- [ ] code" in html

    out, changed = toggle_task(INDENTED_CODE_TASK, 0, True)
    assert changed
    assert out == "para\n\n    - [ ] code\n\n- [x] real\n"


def test_table_cells_carry_no_style():
    html = MarkdownRenderer().render_body("| a | b |\n|:--|--:|\n| 1 | 2 |\n")
    assert "<td" in html
    assert "style=" not in html
