"""Unit tests for the conversion orchestrator.

WHY: The orchestrator owns the order of steps and the partial-result
policy. A regression here silently loses the valid prefix of a damaged
document, or reports success for a failed one.

HOW: convert() is tested in memory with ConversionRequest objects;
run_conversion() is tested against tmp_path files with injected streams.

RULES:
- Partial output must equal the full conversion of the valid prefix
- Validate-only requests never produce output
- All file I/O uses tmp_path
"""

import io

import pytest
from conftest import (
    DUPLICATE_KEY_OBJECT,
    SAMPLE_BONJSON,
    SAMPLE_JSON,
    SAMPLE_VALUE,
    TRUNCATED_OBJECT,
)

from j2b.codec import bonjson, json_text
from j2b.core.errors import EncodeError, ErrorKind, InputError, OutputError
from j2b.core.ir import (
    ConversionRequest,
    DecodeOptions,
    DuplicateKeyMode,
    Form,
    InvalidTextUnitMode,
    NonFiniteNumberMode,
)
from j2b.core.pipeline import COMMANDS, convert, run_conversion


def _to_opposite(data, **kwargs):
    return convert(ConversionRequest(input_bytes=data, to_opposite_form=True, **kwargs))


class TestAutoConversion:
    """Auto mode converts the detected form into the other one."""

    def test_json_to_bonjson(self):
        result = _to_opposite(SAMPLE_JSON)
        assert result.ok
        assert result.source_form is Form.TEXT
        assert result.destination_form is Form.BINARY
        assert result.output == SAMPLE_BONJSON

    def test_bonjson_to_json(self):
        result = _to_opposite(SAMPLE_BONJSON)
        assert result.ok
        assert result.source_form is Form.BINARY
        assert result.destination_form is Form.TEXT
        assert result.output == json_text.encode(SAMPLE_VALUE)
        assert result.consumed == len(SAMPLE_BONJSON)
        assert result.end_offset == len(SAMPLE_BONJSON)

    def test_single_digit_is_bonjson(self):
        result = _to_opposite(b"5")
        assert result.source_form is Form.BINARY
        assert result.output == b"53"


class TestExplicitForms:
    """Explicit commands bypass detection."""

    def test_json_to_json_reformats(self):
        result = convert(ConversionRequest(
            input_bytes=b'{"a":[1,2]}',
            source_form=Form.TEXT,
            destination_form=Form.TEXT,
        ))
        assert result.output == b'{\n    "a": [\n        1,\n        2\n    ]\n}'

    def test_bonjson_to_bonjson_canonicalizes(self):
        # Chunked string and an oversized integer encoding
        data = b"\x99\x68\x07abc\x04de\x71\x05\x00\x9b"
        result = convert(ConversionRequest(
            input_bytes=data,
            source_form=Form.BINARY,
            destination_form=Form.BINARY,
        ))
        assert result.ok
        assert result.output == b"\x99\x85abcde\x05\x9b"

    def test_explicit_text_source_is_not_detected(self):
        # A single digit would be detected as BONJSON
        result = convert(ConversionRequest(
            input_bytes=b"5",
            source_form=Form.TEXT,
            destination_form=Form.BINARY,
        ))
        assert result.ok
        assert result.output == b"\x05"

    def test_explicit_binary_source_on_json_fails(self):
        result = convert(ConversionRequest(
            input_bytes=b'{"a": 1}',
            source_form=Form.BINARY,
            destination_form=Form.TEXT,
        ))
        assert not result.ok

    def test_command_table(self):
        assert COMMANDS["auto"].to_opposite_form
        assert COMMANDS["validate-json"].validate_only
        assert COMMANDS["validate-bonjson"].source_form is Form.BINARY
        assert COMMANDS["json-to-bonjson"].destination_form is Form.BINARY
        assert not COMMANDS["bonjson-to-bonjson"].validate_only


class TestValidateOnly:
    """Validation never produces output, whatever the outcome."""

    def test_valid(self):
        result = convert(ConversionRequest(input_bytes=SAMPLE_BONJSON))
        assert result.ok
        assert result.output == b""
        assert result.destination_form is None

    def test_invalid_has_no_partial_output(self):
        result = convert(ConversionRequest(input_bytes=TRUNCATED_OBJECT))
        assert result.error.kind is ErrorKind.TRUNCATED_INPUT
        assert result.output == b""

    def test_invalid_json(self):
        result = convert(ConversionRequest(input_bytes=b'{"invalid": }', source_form=Form.TEXT))
        assert result.error.kind is ErrorKind.MALFORMED_SYNTAX


class TestPartialResult:
    """A failed binary decode still yields the converted prefix."""

    @pytest.mark.parametrize("damaged, prefix", [
        (TRUNCATED_OBJECT, b"\x9a\x81a\x01\x9b"),
        (b"\x99\x01\x02\x71", b"\x99\x01\x02\x9b"),
        (b"\x9a\x81a\x99\x01\x9a\x81b", b"\x9a\x81a\x99\x01\x9a\x9b\x9b\x9b"),
        (b"\x99\x01\x65\x02\x9b", b"\x99\x01\x9b"),
    ])
    def test_output_matches_valid_prefix(self, damaged, prefix):
        failed = _to_opposite(damaged)
        complete = _to_opposite(prefix)
        assert not failed.ok
        assert complete.ok
        assert failed.output == complete.output
        assert failed.output != b""

    def test_truncated_object_json(self):
        result = _to_opposite(TRUNCATED_OBJECT)
        assert result.output == b'{\n    "a": 1\n}'
        assert result.error.kind is ErrorKind.TRUNCATED_INPUT
        assert result.consumed == 4

    def test_nothing_decoded_gives_empty_output(self):
        result = _to_opposite(b"\x9b")
        assert result.error.kind is ErrorKind.MALFORMED_SYNTAX
        assert result.output == b""

    def test_json_errors_have_no_partial_output(self):
        result = _to_opposite(b'{"a": [1, 2')
        assert not result.ok
        assert result.output == b""


class TestTrailingData:
    """Trailing bytes after BONJSON fail unless explicitly allowed."""

    DATA = b"\x01garbage"

    def test_rejected_but_value_emitted(self):
        result = _to_opposite(self.DATA)
        assert result.error.kind is ErrorKind.TRAILING_DATA
        assert result.error.offset == 1
        assert result.output == b"1"

    def test_allowed(self):
        result = _to_opposite(self.DATA, options=DecodeOptions(allow_trailing_bytes=True))
        assert result.ok
        assert result.output == b"1"
        assert result.consumed == 1

    def test_identical_output_either_way(self):
        doc = SAMPLE_BONJSON + b"\x00\x01\x02"
        strict = _to_opposite(doc)
        lenient = _to_opposite(doc, options=DecodeOptions(allow_trailing_bytes=True))
        assert not strict.ok
        assert lenient.ok
        assert strict.output == lenient.output == json_text.encode(SAMPLE_VALUE)


class TestSkipOffset:
    """Skipping K prefix bytes is the same as converting the unprefixed input."""

    def test_skip_header(self):
        skipped = _to_opposite(b"HEADER" + SAMPLE_BONJSON, skip_offset=6)
        plain = _to_opposite(SAMPLE_BONJSON)
        assert skipped.ok
        assert skipped.output == plain.output
        assert skipped.end_offset == 6 + len(SAMPLE_BONJSON)

    def test_skip_json(self):
        skipped = _to_opposite(b"\x00\x00" + SAMPLE_JSON, skip_offset=2)
        assert skipped.output == SAMPLE_BONJSON

    @pytest.mark.parametrize("skip", [3, 4, 100])
    def test_skip_past_end(self, skip):
        with pytest.raises(InputError):
            _to_opposite(b"abc", skip_offset=skip)

    def test_negative_skip(self):
        with pytest.raises(InputError):
            _to_opposite(b"abc", skip_offset=-1)

    def test_error_offset_includes_skip(self):
        result = _to_opposite(b"XX" + TRUNCATED_OBJECT, skip_offset=2)
        assert result.error.offset == 6
        assert result.consumed == 4
        assert result.end_offset == 6

    def test_empty_input(self):
        with pytest.raises(InputError):
            _to_opposite(b"")


class TestDecodeModes:
    """DecodeOptions reach the binary decoder and encoder."""

    def test_duplicate_reject(self):
        result = _to_opposite(DUPLICATE_KEY_OBJECT)
        assert result.error.kind is ErrorKind.DUPLICATE_KEY

    def test_duplicate_keep_first(self):
        options = DecodeOptions(duplicate_keys=DuplicateKeyMode.KEEP_FIRST)
        result = _to_opposite(DUPLICATE_KEY_OBJECT, options=options)
        assert result.ok
        assert result.output == b'{\n    "a": 1\n}'

    def test_duplicate_keep_last(self):
        options = DecodeOptions(duplicate_keys=DuplicateKeyMode.KEEP_LAST)
        result = _to_opposite(DUPLICATE_KEY_OBJECT, options=options)
        assert result.ok
        assert result.output == b'{\n    "a": 2\n}'

    def test_nan_stringified_for_json(self):
        nan = bonjson.encode(float("nan"), DecodeOptions(non_finite_numbers=NonFiniteNumberMode.ALLOW))
        options = DecodeOptions(non_finite_numbers=NonFiniteNumberMode.STRINGIFY)
        result = _to_opposite(b"\x99" + nan + b"\x9b", options=options)
        assert result.ok
        assert result.output == b'[\n    "NaN"\n]'

    def test_nan_allowed_cannot_become_json(self):
        options = DecodeOptions(non_finite_numbers=NonFiniteNumberMode.ALLOW)
        nan = bonjson.encode(float("nan"), options)
        with pytest.raises(EncodeError):
            _to_opposite(nan, options=options)

    def test_nan_allowed_survives_bonjson_to_bonjson(self):
        options = DecodeOptions(non_finite_numbers=NonFiniteNumberMode.ALLOW)
        nan = bonjson.encode(float("nan"), options)
        result = convert(ConversionRequest(
            input_bytes=nan,
            source_form=Form.BINARY,
            destination_form=Form.BINARY,
            options=options,
        ))
        assert result.ok
        assert result.output == nan

    def test_integer_too_large_for_bonjson(self):
        with pytest.raises(EncodeError):
            _to_opposite(b"[18446744073709551616]")

    def test_lone_surrogate_escape_cannot_become_bonjson(self):
        with pytest.raises(EncodeError):
            _to_opposite(b'["\\udc80"]')

    def test_lone_surrogate_escape_kept_when_ignoring(self):
        options = DecodeOptions(invalid_text_units=InvalidTextUnitMode.IGNORE)
        result = _to_opposite(b'["\\udc80"]', options=options)
        assert result.ok
        assert result.output == b"\x99\x81\x80\x9b"


class TestDeepNesting:
    """Any depth the decoder accepts can be written back as BONJSON."""

    DEPTH = 20000

    def test_bonjson_to_bonjson(self):
        data = b"\x99" * self.DEPTH + b"\x9b" * self.DEPTH
        result = convert(ConversionRequest(
            input_bytes=data,
            source_form=Form.BINARY,
            destination_form=Form.BINARY,
        ))
        assert result.ok
        assert result.output == data

    def test_deep_partial_result(self):
        data = b"\x99" * self.DEPTH
        result = convert(ConversionRequest(
            input_bytes=data,
            source_form=Form.BINARY,
            destination_form=Form.BINARY,
        ))
        assert result.error.kind is ErrorKind.TRUNCATED_INPUT
        assert result.output == data + b"\x9b" * self.DEPTH

    def test_too_deep_for_json_is_encode_error(self):
        data = b"\x99" * self.DEPTH + b"\x9b" * self.DEPTH
        with pytest.raises(EncodeError):
            _to_opposite(data)


class TestRunConversion:
    """File and stream handling around convert()."""

    def test_file_to_file(self, tmp_path):
        src = tmp_path / "in.json"
        dst = tmp_path / "out.boj"
        src.write_bytes(SAMPLE_JSON)
        result = run_conversion(str(src), str(dst), COMMANDS["auto"], DecodeOptions())
        assert result.ok
        assert dst.read_bytes() == SAMPLE_BONJSON

    def test_partial_output_written_before_error(self, tmp_path):
        src = tmp_path / "broken.boj"
        dst = tmp_path / "out.json"
        src.write_bytes(TRUNCATED_OBJECT)
        result = run_conversion(str(src), str(dst), COMMANDS["auto"], DecodeOptions())
        assert not result.ok
        assert dst.read_bytes() == b'{\n    "a": 1\n}'

    def test_no_output_file_when_nothing_decoded(self, tmp_path):
        src = tmp_path / "broken.boj"
        dst = tmp_path / "out.json"
        src.write_bytes(b"\x9b")
        result = run_conversion(str(src), str(dst), COMMANDS["auto"], DecodeOptions())
        assert not result.ok
        assert not dst.exists()

    def test_validate_command_ignores_output_path(self, tmp_path):
        src = tmp_path / "in.boj"
        dst = tmp_path / "out.json"
        src.write_bytes(SAMPLE_BONJSON)
        result = run_conversion(str(src), str(dst), COMMANDS["validate-bonjson"], DecodeOptions())
        assert result.ok
        assert not dst.exists()

    def test_stdin_to_stdout(self):
        stdout = io.BytesIO()
        result = run_conversion(
            "-", "-", COMMANDS["auto"], DecodeOptions(),
            stdin=io.BytesIO(SAMPLE_BONJSON), stdout=stdout,
        )
        assert result.ok
        # BytesIO is not a terminal: no display newline
        assert stdout.getvalue() == json_text.encode(SAMPLE_VALUE)

    def test_end_offset_reported_for_bonjson(self, tmp_path):
        src = tmp_path / "in.boj"
        src.write_bytes(b"HEAD" + SAMPLE_BONJSON + b"xx")
        stderr = io.StringIO()
        result = run_conversion(
            str(src), None, COMMANDS["auto"], DecodeOptions(),
            skip_offset=4, report_end_offset=True, stderr=stderr,
        )
        assert result.error.kind is ErrorKind.TRAILING_DATA
        assert stderr.getvalue() == "{}\n".format(4 + len(SAMPLE_BONJSON))

    def test_end_offset_not_reported_for_json(self, tmp_path):
        src = tmp_path / "in.json"
        src.write_bytes(SAMPLE_JSON)
        stderr = io.StringIO()
        run_conversion(
            str(src), None, COMMANDS["auto"], DecodeOptions(),
            report_end_offset=True, stderr=stderr,
        )
        assert stderr.getvalue() == ""

    def test_missing_input(self, tmp_path):
        with pytest.raises(InputError):
            run_conversion(str(tmp_path / "nope"), None, COMMANDS["auto"], DecodeOptions())

    def test_unwritable_output(self, tmp_path):
        src = tmp_path / "in.json"
        src.write_bytes(SAMPLE_JSON)
        with pytest.raises(OutputError):
            run_conversion(str(src), str(tmp_path / "missing" / "out.boj"), COMMANDS["auto"], DecodeOptions())

    def test_end_offset_reported_when_encoding_fails(self, tmp_path):
        options = DecodeOptions(non_finite_numbers=NonFiniteNumberMode.ALLOW)
        src = tmp_path / "nan.boj"
        dst = tmp_path / "out.json"
        src.write_bytes(bonjson.encode(float("nan"), options))
        stderr = io.StringIO()
        with pytest.raises(EncodeError):
            run_conversion(
                str(src), str(dst), COMMANDS["bonjson-to-json"], options,
                report_end_offset=True, stderr=stderr,
            )
        assert stderr.getvalue() == "9\n"
        assert not dst.exists()

    def test_end_offset_reported_when_writing_fails(self, tmp_path):
        src = tmp_path / "in.boj"
        src.write_bytes(b"HEAD" + SAMPLE_BONJSON)
        stderr = io.StringIO()
        with pytest.raises(OutputError):
            run_conversion(
                str(src), str(tmp_path / "missing" / "out.json"), COMMANDS["auto"], DecodeOptions(),
                skip_offset=4, report_end_offset=True, stderr=stderr,
            )
        assert stderr.getvalue() == "{}\n".format(4 + len(SAMPLE_BONJSON))
