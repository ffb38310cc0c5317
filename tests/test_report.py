from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from raffledraw.raffle import (
    DrawConfig,
    DrawOutcome,
    InputParseError,
    VoucherGroup,
    fill_report,
    load_template,
)
from raffledraw.raffle.report import default_template, format_winner

CONFIG = DrawConfig(
    grand_prizes=3,
    consolation_prizes=2,
    voucher_groups=(VoucherGroup("GF10", 2), VoucherGroup("FP5", 3)),
)


def _outcome(grand=(7, 2, 9), consolation=(11, 4)) -> DrawOutcome:
    return DrawOutcome(
        grand=tuple(grand),
        consolation=tuple(consolation),
        voucher_groups=(("GF10", (21, 22)), ("FP5", (31, 32, 33))),
    )


class FillReportTests(unittest.TestCase):
    def test_grand_winners_fill_any_tokens_in_order(self) -> None:
        report = fill_report("W1:{{ANY}} W2:{{ANY}} W3:{{ANY}}", _outcome(), CONFIG)
        self.assertEqual(report, "W1:#7 W2:#2 W3:#9")

    def test_every_token_kind(self) -> None:
        template = (
            "<p>{{ANY}},{{ANY}},{{ANY}}</p>\n"
            "<p>{{NPW}} {{NPW}}</p>\n"
            "<p>gift: {{GF10}}</p>\n"
            "<p>store: {{FP5}}</p>\n"
        )
        report = fill_report(template, _outcome(), CONFIG)
        self.assertEqual(
            report,
            "<p>#7,#2,#9</p>\n"
            "<p>#11 #4</p>\n"
            "<p>gift: 21 22</p>\n"
            "<p>store: 31 32 33</p>\n",
        )

    def test_voucher_token_is_replaced_once(self) -> None:
        config = DrawConfig(grand_prizes=0, consolation_prizes=0, voucher_groups=(VoucherGroup("GF10", 2),))
        outcome = DrawOutcome(grand=(), consolation=(), voucher_groups=(("GF10", (1, 2)),))
        self.assertEqual(fill_report("{{GF10}}|{{GF10}}", outcome, config), "1 2|{{GF10}}")

    def test_missing_placeholders_are_logged_and_left_alone(self) -> None:
        with self.assertLogs("raffledraw.raffle.report", level="WARNING") as logs:
            report = fill_report("only {{ANY}} here", _outcome(), CONFIG)
        self.assertEqual(report, "only #7 here")
        self.assertTrue(any("{{NPW}}" in line for line in logs.output))
        self.assertTrue(any("{{FP5}}" in line for line in logs.output))

    def test_winner_ids_do_not_collide_with_later_tokens(self) -> None:
        # A filled id must not be mistaken for a placeholder in the next tier.
        report = fill_report("{{ANY}}{{ANY}}{{ANY}}-{{NPW}}{{NPW}}", _outcome(), CONFIG)
        self.assertEqual(report, "#7#2#9-#11#4")

    def test_format_winner(self) -> None:
        self.assertEqual(format_winner(42), "#42")


class TemplateLoadingTests(unittest.TestCase):
    def test_default_template_has_standard_placeholders(self) -> None:
        template = default_template()
        self.assertEqual(template.count("{{ANY}}"), 3)
        self.assertEqual(template.count("{{NPW}}"), 19)
        self.assertEqual(template.count("{{GF10}}"), 1)
        self.assertEqual(template.count("{{FP5}}"), 1)
        self.assertEqual(load_template(), template)

    def test_load_template_from_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "results.txt"
            path.write_text("Winner: {{ANY}}\n", encoding="utf-8")
            self.assertEqual(load_template(path), "Winner: {{ANY}}\n")

    def test_non_utf8_template_is_a_parse_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "results.html"
            path.write_bytes(b"<p>\xe9quipe {{ANY}}</p>\n")
            with self.assertRaises(InputParseError) as ctx:
                load_template(path)
        self.assertIn("not valid UTF-8", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
