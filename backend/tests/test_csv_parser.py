from __future__ import annotations

import csv
import io
import zipfile

import pytest

from app.services.questions.csv_parser import (
    QUESTION_COLUMNS,
    CsvQuestionInput,
    ImportIssueKind,
    parse_and_validate_questions,
    parse_question_upload,
    parse_question_workbook,
)

HEADER = "content,question_type,option_1,option_2,option_3,option_4,correct_indices,explanation,difficulty,points,tags,category,image_url"


def _csv(*rows: str, header: str = HEADER) -> str:
    return "\n".join((header, *rows)) + "\n"


def _kinds(result) -> list[ImportIssueKind]:
    return [issue.kind for issue in result.issues]


def test_parses_single_choice_row():
    result = parse_and_validate_questions(
        _csv('What is 2+2?,single,3,4,5,,2,"Basic math",2,20,"math, basics",Arithmetic,')
    )

    assert result.errors == []
    assert len(result.data) == 1
    row = result.data[0]
    assert isinstance(row, CsvQuestionInput)
    assert row.content == "What is 2+2?"
    assert row.question_type == "single_choice"
    assert row.options == ("3", "4", "5")
    assert row.correct_indices == (2,)
    assert row.explanation == "Basic math"
    assert row.difficulty == 2
    assert row.points == 20
    assert row.tags == ("math", "basics")
    assert row.category == "Arithmetic"
    assert row.image_url is None
    assert row.row_index == 2


@pytest.mark.parametrize("token", ["single", "Single", "SINGLE_CHOICE", " single_choice "])
def test_single_tokens_canonicalise_to_single_choice(token: str):
    result = parse_and_validate_questions(_csv(f"Q,{token},A,B,,,1,,,,,,"))

    assert result.errors == []
    assert result.data[0].question_type == "single_choice"


@pytest.mark.parametrize(
    ("token", "expected"),
    [("multi", "multiple_choice"), ("Multiple_Choice", "multiple_choice"), ("TEXT", "text")],
)
def test_other_tokens_canonicalise(token: str, expected: str):
    result = parse_and_validate_questions(_csv(f"Q,{token},A,B,,,1|2,,,,,,"))

    assert result.errors == []
    assert result.data[0].question_type == expected


def test_text_question_needs_no_options_or_answers():
    result = parse_and_validate_questions(_csv("Explain prompting,text,,,,,,,,,,,"))

    assert result.errors == []
    assert result.data[0].options == ()
    assert result.data[0].correct_indices == ()


def test_missing_content_is_reported_with_spreadsheet_row():
    result = parse_and_validate_questions(_csv("Ok,single,A,B,,,1,,,,,,", ",single,A,B,,,1,,,,,,"))

    assert len(result.data) == 1
    assert result.errors == ["Row 3: 'content' is required."]
    assert _kinds(result) == [ImportIssueKind.MISSING_FIELD]
    assert result.issues[0].row_index == 3


def test_missing_question_type():
    result = parse_and_validate_questions(_csv("Q,,A,B,,,1,,,,,,"))

    assert result.data == []
    assert result.errors == ["Row 2: 'question_type' is required."]


def test_invalid_question_type():
    result = parse_and_validate_questions(_csv("Q,essay,A,B,,,1,,,,,,"))

    assert result.data == []
    assert _kinds(result) == [ImportIssueKind.INVALID_ENUM]
    assert "essay" in result.errors[0]


def test_single_option_is_insufficient():
    result = parse_and_validate_questions(_csv("Q,single,A,,,,1,,,,,,"))

    assert result.data == []
    assert _kinds(result) == [ImportIssueKind.INSUFFICIENT_OPTIONS]
    assert result.errors[0].startswith("Row 2:")


def test_blank_options_are_dropped_before_counting():
    result = parse_and_validate_questions(_csv("Q,multi,A,  ,B,,1|2,,,,,,"))

    assert result.errors == []
    assert result.data[0].options == ("A", "B")


def test_missing_correct_indices():
    result = parse_and_validate_questions(_csv("Q,single,A,B,,,,,,,,,"))

    assert result.data == []
    assert _kinds(result) == [ImportIssueKind.MISSING_CORRECT_ANSWER]


def test_one_out_of_range_token_rejects_the_row():
    result = parse_and_validate_questions(_csv("Q,multi,A,B,C,D,2|5,,,,,,"))

    assert result.data == []
    assert _kinds(result) == [ImportIssueKind.OUT_OF_RANGE_INDEX]
    assert result.errors == ["Row 2: Invalid correct_index '5'. Must be between 1 and 4."]


def test_each_bad_token_is_reported():
    result = parse_and_validate_questions(_csv('Q,multi,A,B,,,"0,x,3",,,,,,'))

    assert result.data == []
    assert _kinds(result) == [
        ImportIssueKind.OUT_OF_RANGE_INDEX,
        ImportIssueKind.OUT_OF_RANGE_INDEX,
        ImportIssueKind.OUT_OF_RANGE_INDEX,
        ImportIssueKind.NO_VALID_ANSWER,
    ]
    assert result.errors[-1] == "Row 2: No valid correct_indices found."


def test_indices_accept_comma_and_pipe_separators():
    result = parse_and_validate_questions(_csv('Q,multi,A,B,C,,"3, 1|1",,,,,,'))

    assert result.errors == []
    assert result.data[0].correct_indices == (1, 3)
    assert result.data[0].is_correct_position(3)
    assert not result.data[0].is_correct_position(2)


def test_numeric_fields_read_the_leading_integer_or_fall_back():
    result = parse_and_validate_questions(_csv("Q,single,A,B,,,1,,hard,15.5,,,", "Q2,single,A,B,,,1,,2.0,,,,"))

    assert result.errors == []
    assert (result.data[0].difficulty, result.data[0].points) == (1, 15)
    assert (result.data[1].difficulty, result.data[1].points) == (2, 10)


def test_spreadsheet_style_indices_are_accepted():
    result = parse_and_validate_questions(_csv('Q,multi,A,B,C,,"1.0|3.0",,,,,,'))

    assert result.errors == []
    assert result.data[0].correct_indices == (1, 3)


def test_full_width_digits_are_not_indices():
    result = parse_and_validate_questions(_csv("Q,single,A,B,,,\uff12,,,,,,"))

    assert result.data == []
    assert _kinds(result) == [ImportIssueKind.OUT_OF_RANGE_INDEX, ImportIssueKind.NO_VALID_ANSWER]


def test_tags_are_trimmed_deduplicated_and_blank_filtered():
    result = parse_and_validate_questions(_csv('Q,text,,,,,,,,," a, ,b,a ",,'))

    assert result.data[0].tags == ("a", "b")


def test_leading_bom_does_not_corrupt_first_header():
    text = "\ufeff" + _csv("Q,single,A,B,,,1,,,,,,")

    result = parse_and_validate_questions(text)

    assert result.errors == []
    assert result.data[0].content == "Q"


def test_bom_prefixed_bytes_are_accepted():
    content = ("\ufeff" + _csv("Q,single,A,B,,,1,,,,,,")).encode("utf-8")

    result = parse_and_validate_questions(content)

    assert result.errors == []
    assert len(result.data) == 1


def test_headers_are_case_insensitive_and_extra_columns_ignored():
    result = parse_and_validate_questions(
        "Content, Question_Type ,Option_1,OPTION_2,Correct_Indices,notes\nQ,single,A,B,2,ignored\n"
    )

    assert result.errors == []
    assert result.data[0].correct_indices == (2,)


def test_quoted_fields_keep_commas_and_newlines():
    result = parse_and_validate_questions(_csv('"Line one\nline two, with comma",single,"A, really",B,,,1,,,,,,'))

    assert result.errors == []
    assert result.data[0].content == "Line one\nline two, with comma"
    assert result.data[0].options[0] == "A, really"


def test_blank_lines_are_skipped_but_counted():
    result = parse_and_validate_questions(_csv("Q1,single,A,B,,,1,,,,,,", ",,,,,,,,,,,,", ",single,A,B,,,1,,,,,,"))

    assert len(result.data) == 1
    assert result.errors == ["Row 4: 'content' is required."]


def test_options_beyond_ten_are_ignored():
    header = ",".join(["content", "question_type", *[f"option_{n}" for n in range(1, 12)], "correct_indices"])
    row = ",".join(["Q", "single", *[f"O{n}" for n in range(1, 12)], "10"])

    result = parse_and_validate_questions(_csv(row, header=header))

    assert result.errors == []
    assert len(result.data[0].options) == 10
    assert result.data[0].correct_indices == (10,)


def test_generated_rows_recover_original_selections():
    selections = [(("Red", "Green", "Blue"), (2,)), (("W", "X", "Y", "Z"), (1, 4))]
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(QUESTION_COLUMNS)
    for options, correct in selections:
        record = dict.fromkeys(QUESTION_COLUMNS, "")
        record.update(content="Pick", question_type="multi", correct_indices="|".join(map(str, correct)))
        for position, text in enumerate(options, start=1):
            record[f"option_{position}"] = text
        writer.writerow([record[name] for name in QUESTION_COLUMNS])

    result = parse_and_validate_questions(buffer.getvalue())

    assert result.errors == []
    recovered = [(row.options, row.correct_indices) for row in result.data]
    assert recovered == selections
    assert [row.options[index - 1] for index in result.data[1].correct_indices] == ["W", "Z"]


@pytest.mark.parametrize(
    "content",
    [
        b"\xff\xfe\x00garbage\x81\x82",
        b"",
        "   \n",
        "title,body\nhello,world\n",
    ],
)
def test_malformed_input_yields_error_and_no_data(content):
    result = parse_and_validate_questions(content)

    assert result.data == []
    assert _kinds(result) == [ImportIssueKind.MALFORMED_CSV]
    assert result.errors[0].startswith("CSV Parse Error")


def test_workbook_rows_use_the_same_validation():
    from openpyxl import Workbook

    wb = Workbook()
    ws = wb.active
    ws.title = "questions"
    ws.append(["content", "question_type", "option_1", "option_2", "correct_indices", "points"])
    ws.append(["Q1", "single", "A", "B", 2, 15.0])
    ws.append(["Q2", "single", "A", None, 1, None])
    buffer = io.BytesIO()
    wb.save(buffer)

    result = parse_question_workbook(buffer.getvalue())

    assert len(result.data) == 1
    assert result.data[0].correct_indices == (2,)
    assert result.data[0].points == 15
    assert _kinds(result) == [ImportIssueKind.INSUFFICIENT_OPTIONS]
    assert result.issues[0].row_index == 3


def test_upload_dispatch_by_extension():
    csv_result = parse_question_upload("bank.csv", _csv("Q,text,,,,,,,,,,,").encode("utf-8"))
    assert csv_result.errors == []

    broken = parse_question_upload("bank.xlsx", b"not a workbook")
    assert broken.data == []
    assert _kinds(broken) == [ImportIssueKind.MALFORMED_CSV]


def _truncate_sheet_xml(content: bytes) -> bytes:
    source = zipfile.ZipFile(io.BytesIO(content))
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as target:
        for item in source.infolist():
            data = source.read(item.filename)
            if item.filename == "xl/worksheets/sheet1.xml":
                data = data[: len(data) // 2]
            target.writestr(item, data)
    return buffer.getvalue()


def test_corrupt_sheet_is_reported_not_raised():
    from openpyxl import Workbook

    wb = Workbook()
    ws = wb.active
    ws.append(["content", "question_type", "option_1", "option_2", "correct_indices"])
    for number in range(20):
        ws.append([f"Question {number}", "single", "A", "B", 1])
    buffer = io.BytesIO()
    wb.save(buffer)

    result = parse_question_upload("bank.xlsx", _truncate_sheet_xml(buffer.getvalue()))

    assert result.data == []
    assert _kinds(result) == [ImportIssueKind.MALFORMED_CSV]
    assert result.errors[0].startswith("Workbook Parse Error")
