import pytest

from sanesystem import utils


@pytest.mark.parametrize(
    "text, expected",
    [("123", True), ("0", True), ("", False), ("12a", False), ("-1", False), (" 1", False)],
)
def test_is_number(text, expected):
    assert utils.is_number(text) is expected


def test_wild_to_regex_empty():
    assert utils.wild_to_regex("", True) == "^$"


def test_wild_to_regex_single():
    assert utils.wild_to_regex("*.txt", True) == "^.*\\.txt$"


def test_wild_to_regex_alternatives():
    assert utils.wild_to_regex("a|b", True) == "(?:^a$|^b$)"


def test_wild_to_regex_trailing_bar_adds_no_empty_alternative():
    assert utils.wild_to_regex("a|", True) == utils.wild_to_regex("a|b", True).replace("|^b$", "")


def test_wild_to_regex_case_insensitive_marks_pattern():
    sensitive = utils.wild_to_regex("x?", True)
    insensitive = utils.wild_to_regex("x?")
    assert insensitive.startswith("(?i)")
    assert insensitive.endswith(sensitive)


@pytest.mark.parametrize(
    "name, pattern, expected",
    [
        ("file.TXT", "*.txt", True),
        ("file.txt", "*.log", False),
        ("abc", "a?c", True),
        ("abbc", "a?c", False),
        ("axb", "a.b", False),
        ("a.b", "a.b", True),
        ("core", "*.log|core", True),
        ("x.log", "*.log|core", True),
        ("cores", "*.log|core", False),
        ("(x)+[y]", "(x)+[y]", True),
        ("anything", "*", True),
        ("", "", True),
        ("a", "", False),
    ],
)
def test_match_wild(name, pattern, expected):
    assert utils.match_wild(name, pattern) is expected


def test_proc_exec_captures_stdout():
    assert utils.proc_exec("echo hello") == "hello\n"


def test_proc_exec_ignores_stderr():
    assert utils.proc_exec("echo out; echo err 1>&2") == "out\n"


def test_proc_exec_failing_command_gives_empty():
    assert utils.proc_exec("exit 3") == ""


def test_split_str_drops_empty_tokens():
    assert utils.split_str("  12 ?  Ss   0:01 /sbin/init ", " ") == ["12", "?", "Ss", "0:01", "/sbin/init"]


def test_split_str_empty():
    assert utils.split_str("", ",") == []


def test_split_str_roundtrip():
    tokens = ["a", "bb", "ccc"]
    assert utils.split_str(",".join(tokens), ",") == tokens