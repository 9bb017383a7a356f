"""Tests for the call-to-action precedence rule."""

from __future__ import annotations

import unittest

from adflow.types import CtaDetails
from adflow.utils.cta import GENERIC_CTA, assemble_cta, cta_instruction, cta_violations


class AssembleCtaTest(unittest.TestCase):
    """One CTA form per url/whatsapp presence state."""

    def test_four_way_rule(self) -> None:
        cases = [
            (
                CtaDetails(url="shop.example.com", whatsapp="+1 555 0100"),
                "Shop now at shop.example.com or message us on WhatsApp at +1 555 0100",
            ),
            (CtaDetails(url="shop.example.com"), "Shop now at shop.example.com"),
            (CtaDetails(whatsapp="+1 555 0100"), "Message us on WhatsApp at +1 555 0100"),
            (CtaDetails(), GENERIC_CTA),
        ]
        for details, expected in cases:
            with self.subTest(details=details):
                self.assertEqual(assemble_cta(details), expected)

    def test_blank_values_count_as_absent(self) -> None:
        self.assertEqual(assemble_cta(CtaDetails(url="  ", whatsapp="")), GENERIC_CTA)

    def test_instruction_forbids_invented_destinations(self) -> None:
        self.assertIn("do not invent", cta_instruction(CtaDetails()))
        self.assertIn("must not mention WhatsApp", cta_instruction(CtaDetails(url="shop.example.com")))


class CtaViolationsTest(unittest.TestCase):
    """Conformance checks applied to provider-written CTAs."""

    def test_url_only_accepts_scheme_variants(self) -> None:
        details = CtaDetails(url="https://www.shop.example.com/")
        self.assertEqual(cta_violations("Grab yours at shop.example.com today", details), [])

    def test_url_only_rejects_whatsapp(self) -> None:
        details = CtaDetails(url="shop.example.com")
        problems = cta_violations("Shop now at shop.example.com or WhatsApp us", details)
        self.assertEqual(len(problems), 1)
        self.assertIn("WhatsApp", problems[0])

    def test_missing_url_reference_is_reported(self) -> None:
        problems = cta_violations("Buy now!", CtaDetails(url="shop.example.com"))
        self.assertEqual(len(problems), 1)

    def test_whatsapp_matched_by_digits(self) -> None:
        details = CtaDetails(whatsapp="+1 (555) 0100")
        self.assertEqual(cta_violations("Text 15550100 for a quote", details), [])

    def test_no_details_rejects_fabricated_url(self) -> None:
        problems = cta_violations("Visit www.madeup-store.com", CtaDetails())
        self.assertEqual(len(problems), 1)

    def test_empty_cta_is_reported(self) -> None:
        for details in (CtaDetails(), CtaDetails(url="x.com"), CtaDetails(whatsapp="+1 555 0100")):
            with self.subTest(details=details):
                self.assertEqual(cta_violations("  ", details), ["CTA is empty"])

    def test_url_only_rejects_second_invented_url(self) -> None:
        details = CtaDetails(url="https://x.com")
        problems = cta_violations("Shop x.com or www.fake-store.io", details)
        self.assertEqual(len(problems), 1)
        self.assertIn("www.fake-store.io", problems[0])

    def test_url_only_accepts_deeper_path_on_given_site(self) -> None:
        self.assertEqual(cta_violations("Shop at https://x.com/sale.", CtaDetails(url="https://x.com")), [])

    def test_both_required_when_both_given(self) -> None:
        details = CtaDetails(url="shop.example.com", whatsapp="+1 555 0100")
        self.assertEqual(cta_violations(assemble_cta(details), details), [])
        self.assertEqual(len(cta_violations("Shop now at shop.example.com", details)), 1)


if __name__ == "__main__":
    unittest.main()
