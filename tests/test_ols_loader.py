import io
import pathlib
import sys
import tempfile
import unittest

import numpy as np

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from olsread.config.runtime import ReaderConfig  # noqa: E402
from olsread.core.errors import (  # noqa: E402
    DecodeError,
    EmptyDataError,
    InvalidChannelCountError,
    InvalidInstructionError,
    MissingFieldError,
    NumericDecodeError,
    SizeMismatchError,
    TextEncodingError,
    UnsupportedFormatError,
)
from olsread.core.line_reader import Instruction  # noqa: E402
from olsread.core.models import MAX_CHANNELS, ParseState  # noqa: E402
from olsread.dataio.ols_loader import (  # noqa: E402
    apply_instruction,
    decode,
    decodes,
    load_ols,
)

SCENARIO_A = ";Rate: 1000000\n;Channels: 8\nFF@10\n00@20\n"

FULL_FILE = """;Size: 3
;Rate: 200000000
;Channels: 32
;EnabledChannels: 255
;TriggerPosition: 1024
;Compressed: true
;AbsoluteLength: 4096
;CursorEnabled: true
;Cursor0: 12
;Cursor1: -1
;SomethingNew: whatever
12345678@0
0@1024
a5@4095
"""


class _FailingStream:
    def __iter__(self):
        yield ";Rate: 100\n"
        raise OSError("device went away")


class DecodeScenarioTest(unittest.TestCase):
    def test_scenario_a_defaults(self):
        result = decodes(SCENARIO_A)

        self.assertEqual(result.size, 2)
        self.assertEqual(result.sample_rate, 1000000)
        self.assertEqual(result.channel_count, 8)
        self.assertEqual(result.enabled_channel_mask, -1)
        self.assertEqual(result.trigger_position, -1)
        self.assertEqual(result.absolute_length, -1)
        np.testing.assert_array_equal(result.values, [255, 0])
        np.testing.assert_array_equal(result.timestamps, [10, 20])

    def test_scenario_b_size_mismatch(self):
        with self.assertRaises(SizeMismatchError) as ctx:
            decodes(";Size: 3\n" + SCENARIO_A)
        self.assertEqual(ctx.exception.declared, 3)
        self.assertEqual(ctx.exception.observed, 2)

    def test_scenario_c_zero_channels(self):
        with self.assertRaises(InvalidChannelCountError) as ctx:
            decodes(";Rate: 1000000\n;Channels: 0\nFF@10\n00@20\n")
        self.assertEqual(ctx.exception.channel_count, 0)

    def test_scenario_d_uncompressed(self):
        with self.assertRaises(UnsupportedFormatError):
            decodes(";Compressed: false\n" + SCENARIO_A)

    def test_full_file(self):
        result = decodes(FULL_FILE)

        self.assertEqual(result.size, 3)
        self.assertEqual(result.sample_rate, 200000000)
        self.assertEqual(result.channel_count, 32)
        self.assertEqual(result.enabled_channel_mask, 255)
        self.assertEqual(result.trigger_position, 1024)
        self.assertEqual(result.absolute_length, 4096)
        np.testing.assert_array_equal(result.values, [0x12345678, 0, 0xA5])
        np.testing.assert_array_equal(result.timestamps, [0, 1024, 4095])

    def test_instruction_order_does_not_matter(self):
        reordered = "FF@10\n;Channels: 8\n00@20\n;Rate: 1000000\n"
        self.assertEqual(decodes(reordered), decodes(SCENARIO_A))

    def test_crlf_line_endings(self):
        result = decodes(SCENARIO_A.replace("\n", "\r\n"))
        np.testing.assert_array_equal(result.values, [255, 0])

    def test_compressed_is_case_insensitive(self):
        result = decodes(";Compressed: TRUE\n" + SCENARIO_A)
        self.assertEqual(result.size, 2)

    def test_non_true_compressed_value_is_rejected(self):
        with self.assertRaises(UnsupportedFormatError):
            decodes(";Compressed: yes\n" + SCENARIO_A)

    def test_negative_size_means_unknown(self):
        self.assertEqual(decodes(";Size: -1\n" + SCENARIO_A).size, 2)

    def test_accepts_list_of_lines(self):
        result = decode([";Rate: 10", ";Channels: 1", "1@0"])
        self.assertEqual(result.size, 1)


class DecodeValidationTest(unittest.TestCase):
    def test_no_data_lines(self):
        with self.assertRaises(EmptyDataError):
            decodes(";Rate: 1000000\n;Channels: 8\n")

    def test_empty_data_wins_over_uncompressed(self):
        with self.assertRaises(EmptyDataError):
            decodes(";Compressed: false\n")

    def test_uncompressed_wins_over_size_mismatch(self):
        with self.assertRaises(UnsupportedFormatError):
            decodes(";Size: 99\n;Compressed: false\n" + SCENARIO_A)

    def test_missing_rate(self):
        with self.assertRaises(MissingFieldError) as ctx:
            decodes(";Channels: 8\nFF@10\n")
        self.assertEqual(ctx.exception.field_name, "Rate")

    def test_missing_channels(self):
        with self.assertRaises(InvalidChannelCountError) as ctx:
            decodes(";Rate: 10\nFF@10\n")
        self.assertIsNone(ctx.exception.channel_count)

    def test_too_many_channels(self):
        with self.assertRaises(InvalidChannelCountError):
            decodes(";Rate: 10\n;Channels: 33\nFF@10\n")

    def test_config_can_lower_channel_limit(self):
        with self.assertRaises(InvalidChannelCountError):
            decodes(SCENARIO_A, config=ReaderConfig(max_channels=4))

    def test_config_cannot_raise_channel_limit(self):
        with self.assertRaises(InvalidChannelCountError):
            decodes(";Rate: 10\n;Channels: 33\nFF@10\n", config=ReaderConfig(max_channels=64))

    def test_malformed_instruction_value(self):
        with self.assertRaises(InvalidInstructionError) as ctx:
            decodes(";Rate: fast\n" + SCENARIO_A)
        self.assertEqual(ctx.exception.key, "Rate")

    def test_instruction_value_out_of_int32_range(self):
        with self.assertRaises(InvalidInstructionError):
            decodes(";Rate: 4294967296\n;Channels: 8\nFF@10\n")

    def test_overlong_instruction_value_is_decode_error(self):
        with self.assertRaises(InvalidInstructionError) as ctx:
            decodes(";Rate: " + "1" * 5000 + "\n;Channels: 8\nFF@10\n")
        self.assertEqual(ctx.exception.key, "Rate")
        self.assertEqual(len(ctx.exception.value), 5000)
        self.assertLess(len(str(ctx.exception)), 200)

    def test_leading_zeros_in_instruction_value(self):
        result = decodes(";Rate: " + "0" * 5000 + "1000000\n;Channels: 08\nFF@10\n")
        self.assertEqual(result.sample_rate, 1000000)
        self.assertEqual(result.channel_count, 8)

    def test_channel_error_defaults_to_format_limit(self):
        self.assertEqual(InvalidChannelCountError(40).max_channels, MAX_CHANNELS)

    def test_wide_trigger_position(self):
        result = decodes(";TriggerPosition: 4294967296\n" + SCENARIO_A)
        self.assertEqual(result.trigger_position, 4294967296)

    def test_errors_share_base_class(self):
        for text in ["", ";Compressed: false\n1@1\n", ";Rate: x\n1@1\n"]:
            with self.assertRaises(DecodeError):
                decodes(text)

    def test_stream_errors_propagate_unwrapped(self):
        with self.assertRaises(OSError) as ctx:
            decode(_FailingStream())
        self.assertNotIsInstance(ctx.exception, DecodeError)


class NumericDecodeTest(unittest.TestCase):
    def _decode_samples(self, *samples):
        return decodes(";Rate: 1\n;Channels: 32\n" + "".join(s + "\n" for s in samples))

    def test_values_are_narrowed_to_int32(self):
        result = self._decode_samples("FFFFFFFF@0", "1FFFFFFFF@1", "80000000@2", "7FFFFFFF@3")
        self.assertEqual(result.values.dtype, np.int32)
        np.testing.assert_array_equal(result.values, [-1, -1, -(1 << 31), (1 << 31) - 1])

    def test_hex_beyond_int64_fails_with_index(self):
        with self.assertRaises(NumericDecodeError) as ctx:
            self._decode_samples("1@0", "10000000000000000@1")
        self.assertEqual(ctx.exception.index, 1)
        self.assertIsInstance(ctx.exception.__cause__, OverflowError)

    def test_timestamp_beyond_int64_fails(self):
        with self.assertRaises(NumericDecodeError) as ctx:
            self._decode_samples("1@9223372036854775808")
        self.assertEqual(ctx.exception.index, 0)

    def test_largest_timestamp_is_kept(self):
        result = self._decode_samples("1@9223372036854775807")
        self.assertEqual(int(result.timestamps[0]), (1 << 63) - 1)
        self.assertTrue((result.timestamps >= 0).all())

    def test_leading_zeros_do_not_count_towards_width(self):
        result = self._decode_samples("0" * 5000 + "FF@" + "0" * 5000 + "5")
        self.assertEqual(int(result.values[0]), 255)
        self.assertEqual(int(result.timestamps[0]), 5)

    def test_overlong_timestamp_fails_with_short_message(self):
        with self.assertRaises(NumericDecodeError) as ctx:
            self._decode_samples("1@0", "2@" + "9" * 5000)
        self.assertEqual(ctx.exception.index, 1)
        self.assertEqual(ctx.exception.raw, "2@" + "9" * 5000)
        self.assertIsInstance(ctx.exception.__cause__, OverflowError)
        self.assertLess(len(str(ctx.exception)), 200)

    def test_accumulated_negative_size_sentinel_is_not_applied(self):
        state = ParseState()
        apply_instruction(state, Instruction("Size", "-1"))
        self.assertIsNone(state.size)


class LoadOlsTest(unittest.TestCase):
    def test_load_from_path(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "capture.ols"
            path.write_text(FULL_FILE, encoding="utf-8")

            result = load_ols(path)

            self.assertEqual(result.size, 3)
            self.assertEqual(result, decode(io.StringIO(FULL_FILE)))

    def test_undecodable_byte_in_ignored_line(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "capture.ols"
            path.write_bytes(b";Rate: 1\n;Channels: 8\n;Note: \xff\xfe\nFF@10\n")

            result = load_ols(path)

            self.assertEqual(result.size, 1)
            self.assertEqual(int(result.values[0]), 255)

    def test_strict_encoding_raises_decode_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "capture.ols"
            path.write_bytes(b";Rate: 1\n;Channels: 8\n;Note: \xff\xfe\nFF@10\n")

            with self.assertRaises(TextEncodingError) as ctx:
                load_ols(path, config=ReaderConfig(errors="strict"))

            self.assertEqual(ctx.exception.encoding, "utf-8")
            self.assertIsInstance(ctx.exception.__cause__, UnicodeDecodeError)

    def test_missing_file_raises_oserror(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(OSError):
                load_ols(pathlib.Path(tmpdir) / "nope.ols")


if __name__ == "__main__":
    unittest.main()
