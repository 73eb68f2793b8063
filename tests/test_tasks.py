import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from mdkb.core.tasks import TASK_INDEX_MARK, count_tasks, mark_tasks, toggle_task

NOTE = """# Todo

- [ ] first
- [x] second
  * [ ] nested
1. [X] numbered

```
- [ ] inside code
```

- [ ] last
"""


def test_count_skips_fenced_code():
    assert count_tasks(NOTE) == 5


def test_check_task():
    out, changed = toggle_task(NOTE, 0, True)
    assert changed
    assert "- [x] first" in out
    assert len(out) == len(NOTE)


def test_uncheck_task():
    out, changed = toggle_task(NOTE, 3, False)
    assert changed
    assert "1. [ ] numbered" in out


def test_index_after_code_block():
    out, changed = toggle_task(NOTE, 4, True)
    assert changed
    assert "- [x] last" in out
    assert "- [ ] inside code" in out


def test_no_change_when_state_matches():
    out, changed = toggle_task(NOTE, 1, True)
    assert not changed
    assert out == NOTE


def test_out_of_range_is_noop():
    assert toggle_task(NOTE, 99, True) == (NOTE, False)
    assert toggle_task(NOTE, -1, True) == (NOTE, False)
    assert toggle_task("", 0, True) == ("", False)


def test_quoted_task_counts():
    doc = "> - [ ] quoted\n> - [x] done\n"
    assert count_tasks(doc) == 2
    out, changed = toggle_task(doc, 0, True)
    assert changed
    assert out == "> - [x] quoted\n> - [x] done\n"


def test_indented_code_is_skipped():
    doc = "para\n\n    - [ ] code\n\t- [ ] tab code\n\n- [ ] real\n"
    assert count_tasks(doc) == 1
    out, _ = toggle_task(doc, 0, True)
    assert out.endswith("- [x] real\n")
    assert "    - [ ] code" in out


def test_deeply_indented_item_inside_list_counts():
    doc = "- [ ] parent\n\n    - [ ] child\n"
    assert count_tasks(doc) == 2
    out, _ = toggle_task(doc, 1, True)
    assert "    - [x] child" in out


def test_mark_tasks_tags_source_index():
    marked = mark_tasks("- [ ] a\n- [x] b\n")
    assert marked == f"- [ ]{TASK_INDEX_MARK}0{TASK_INDEX_MARK} a\n- [x]{TASK_INDEX_MARK}1{TASK_INDEX_MARK} b\n"
