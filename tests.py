#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Automated tests"""

import json
import os
import unittest
from unittest import mock
import base64

import dns.resolver
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from expiringdict import ExpiringDict

import checkdkim
import checkdkim.dkim
import checkdkim.tagvalue
import checkdkim.utils

sig1 = (
    " v=1; a=rsa-sha256; d=example.net; s=brisbane;\r\n"
    " c=simple; q=dns/txt; i=@eng.example.net;\r\n"
    " t=1117574938; x=1118006938;\r\n"
    " h=from:to:subject:date;\r\n"
    " z=From:foo@eng.example.net|To:joe@example.com|\r\n"
    " Subject:demo=20run|Date:July=205,=202005=203:44:08=20PM=20-0700;\r\n"
    " bh=MTIzNDU2Nzg5MDEyMzQ1Njc4OTAxMjM0NTY3ODkwMTI=;\r\n"
    " b=dzdVyOfAKCdLXdJOc9G2q8LoXSlEniSbav+yuU4zGeeruD00lszZVoG4ZHRNiYzR"
)

sig2 = (
    "v=1; a=rsa-sha256; s=brisbane; d=example.com;\t\r\n"
    " \t c=simple/simple; q=dns/txt; i=joe@football.example.com;\r\n"
    " h=Received : From : To : Subject : Date : Message-ID;\r\n"
    " bh=2jUSOH9NhtVGCQWNr9BrIAPreKQjO6Sn7XIkfJVOzv8=;\r\n"
    " b=AuUoFEfDxTDkHlLXSZEpZj79LICEps6eda7W3deTVFOk4yAUoqOB\r\n"
    " 4nujc7YopdG5dWLSdNg6xNAZpOPr+kHxt1IrE+NahM6L/LbvaHut\r\n"
    " KVdkLLkpVaVVQPzeRDI009SO2Il5Lu7rDNH6mZckBdrIx0orEtZV\r\n"
    " 4bmp/YzhwvcubU4=;"
)

# The 1024 bit RSA example key from RFC 6376, appendix C
key1 = (
    "v=DKIM1; p=MIGfMA0GCSqGSIb3DQEBAQUAA4GNADCBiQ\r\n"
    " KBgQDwIRP/UC3SBsEmGqZ9ZJW3/DkMoGeLnQg1fWn7/zYt\r\n"
    " IxN2SnFCjxOCKG9v3b4jYfcTNh5ijSsq631uBItLa7od+v\r\n"
    " /RtdC2UzJ1lWT947qR+Rcac2gbto/NMqJ0fzfVjH4OuKhi\r\n"
    " tdY9tf6mcwGjaNBcWToIMmPSPDdQPNUYckcQ2QIDAQAB"
)

# The Ed25519 example key from RFC 8463, appendix A
ed25519_key_data = "11qYAYKxCrfVS/7TyWQHOg7hcvPapiMlrwIaaPcHURo="


def severities(field):
    return [annotation["severity"] for annotation in field["annotations"]]


class FakeTXTRecord(object):
    def __init__(self, *strings):
        self.strings = [s.encode() for s in strings]


class FakeResolver(object):
    def __init__(self, answers=None, error=None):
        self.answers = answers or []
        self.error = error
        self.queries = []

    def resolve(self, name, rdtype, lifetime=None):
        self.queries.append((name, rdtype))
        if self.error is not None:
            raise self.error
        return self.answers


class Test(unittest.TestCase):
    def testTagListSerialization(self):
        """Tag-lists without folding or duplicates can be written back out"""
        examples = [
            "v=DKIM1;k=rsa;h=sha256;p=MIGfMA0GCSqGSIb3DQEB;",
            "v = DKIM1 ; k=ed25519;\tn=a note with spaces ;p=abc",
            "a=;b=1;c=!#$%&",
        ]

        for example in examples:
            items = checkdkim.parse_tag_list(example)
            serialized = "".join(f"{i['tag']}={i['value']};" for i in items)
            pairs = [p.split("=", 1) for p in example.split(";") if p.strip()]
            expected = "".join(f"{t.strip()}={v.strip()};" for t, v in pairs)
            self.assertEqual(serialized, expected)

    def testSignatureItems(self):
        """A DKIM-Signature value parses to one item per tag"""
        items = checkdkim.parse_tag_list(
            "v=1; a=rsa-sha256; d=example.net; s=brisbane; c=simple"
        )
        self.assertEqual(len(items), 5)
        self.assertEqual([i["tag"] for i in items], ["v", "a", "d", "s", "c"])

        fields = checkdkim.parse_tag_map(
            "v=1; a=rsa-sha256; d=example.net; s=brisbane; c=simple"
        )
        self.assertEqual(fields["v"]["value"], "1")
        self.assertEqual(fields["v"]["index"], 0)
        self.assertFalse(fields["v"]["duplicate"])
        self.assertTrue(fields["v"]["defined"])
        self.assertEqual(fields["v"]["annotations"], [])

    def testFoldedSignatures(self):
        """Signatures folded across lines are parsed"""
        items = checkdkim.parse_tag_list(sig1)
        self.assertEqual(
            [i["tag"] for i in items],
            ["v", "a", "d", "s", "c", "q", "i", "t", "x", "h", "z", "bh", "b"],
        )
        values = {i["tag"]: i["value"] for i in items}
        self.assertEqual(values["h"], "from:to:subject:date")
        self.assertEqual(
            values["z"],
            "From:foo@eng.example.net|To:joe@example.com|\r\n"
            " Subject:demo=20run|Date:July=205,=202005=203:44:08=20PM=20-0700",
        )
        self.assertTrue(values["b"].endswith("ZHRNiYzR"))

        items = checkdkim.parse_tag_list(sig2)
        self.assertEqual(len(items), 10)
        values = {i["tag"]: i["value"] for i in items}
        self.assertEqual(values["c"], "simple/simple")
        self.assertEqual(
            values["h"], "Received : From : To : Subject : Date : Message-ID"
        )
        self.assertTrue(values["b"].endswith("4bmp/YzhwvcubU4="))

    def testPositions(self):
        """Items record where their tags and values start"""
        items = checkdkim.parse_tag_list("v = DKIM1; p=abc")
        self.assertEqual(items[0]["tag_pos"], 0)
        self.assertEqual(items[0]["value_pos"], 4)
        self.assertEqual(items[1]["tag_pos"], 11)
        self.assertEqual(items[1]["value_pos"], 13)

    def testFoldingWhitespaceInValues(self):
        """Folding whitespace inside a value is kept, trailing whitespace is not"""
        items = checkdkim.parse_tag_list("p=ab\r\n cd; k=rsa")
        self.assertEqual(items[0]["value"], "ab\r\n cd")
        self.assertEqual(items[1]["value"], "rsa")

        items = checkdkim.parse_tag_list("p=abc \r\n ;n=x y\t")
        self.assertEqual(items[0]["value"], "abc")
        self.assertEqual(items[1]["value"], "x y")

    def testEmptyInput(self):
        """Empty tag-lists are valid"""
        self.assertEqual(checkdkim.parse_tag_list(""), [])
        self.assertEqual(checkdkim.parse_tag_list(" \t"), [])
        self.assertEqual(checkdkim.parse_tag_map(""), {})
        self.assertEqual(len(checkdkim.parse_tag_list("a=1;")), 1)
        self.assertEqual(checkdkim.parse_tag_list("a=")[0]["value"], "")

    def testDuplicateTags(self):
        """The last occurrence of a repeated tag is kept and marked"""
        fields = checkdkim.parse_tag_map("a=1; b=2; a=3")
        self.assertEqual(fields["a"]["value"], "3")
        self.assertEqual(fields["a"]["index"], 2)
        self.assertEqual(fields["a"]["tag_pos"], 10)
        self.assertTrue(fields["a"]["duplicate"])
        self.assertEqual(fields["b"]["index"], 1)
        self.assertFalse(fields["b"]["duplicate"])

    def testTagNamesAreCaseSensitive(self):
        """Tags that differ only in case are different tags"""
        fields = checkdkim.parse_tag_map("V=DKIM1; v=DKIM1; a_1=x")
        self.assertFalse(fields["v"]["duplicate"])
        self.assertEqual(set(fields.keys()), {"V", "v", "a_1"})

    def testMalformedFoldingWhitespace(self):
        """A CRLF that is not followed by whitespace is a syntax error at
        the CRLF"""
        with self.assertRaises(checkdkim.TagValueSyntaxError) as context:
            checkdkim.parse_tag_list("v=DKIM1;\r\np=abc")
        self.assertEqual(context.exception.pos, 8)
        self.assertEqual(context.exception.message, "malformed folding whitespace")

        with self.assertRaises(checkdkim.TagValueSyntaxError) as context:
            checkdkim.parse_tag_list("p=ab\r\ncd")
        self.assertEqual(context.exception.pos, 4)

        with self.assertRaises(checkdkim.TagValueSyntaxError) as context:
            checkdkim.parse_tag_list("p=abcd\r\n")
        self.assertEqual(context.exception.pos, 6)

    def testTagSyntaxErrors(self):
        """Tags must start with a letter and be followed by ="""
        with self.assertRaises(checkdkim.TagValueSyntaxError) as context:
            checkdkim.parse_tag_list("1v=DKIM1")
        self.assertEqual(context.exception.message, "expecting alpha character in tag")
        self.assertEqual(context.exception.pos, 0)

        with self.assertRaises(checkdkim.TagValueSyntaxError) as context:
            checkdkim.parse_tag_list("v=DKIM1; ;")
        self.assertEqual(context.exception.pos, 9)

        with self.assertRaises(checkdkim.TagValueSyntaxError) as context:
            checkdkim.parse_tag_list("v DKIM1")
        self.assertEqual(context.exception.message, "expecting '='")
        self.assertEqual(context.exception.pos, 2)

        self.assertRaises(checkdkim.TagValueError, checkdkim.parse_tag_list, "v")

    def testSyntaxErrorMarker(self):
        """Syntax errors point out where the problem is"""
        with self.assertRaises(checkdkim.TagValueSyntaxError) as context:
            checkdkim.parse_tag_list("v DKIM1")
        self.assertEqual(context.exception.marked_record(), "v ➞DKIM1")
        self.assertIn("at position 2", str(context.exception))
        self.assertEqual(context.exception.marked_record("^"), "v ^DKIM1")

    def testNonASCIIPositions(self):
        """Positions are byte offsets, even after non-ASCII text"""
        with self.assertRaises(checkdkim.TagValueSyntaxError) as context:
            checkdkim.parse_tag_list("n=café;\r\nx=1")
        self.assertEqual(context.exception.pos, 8)
        self.assertEqual(context.exception.marked_record(), "n=café;➞\r\nx=1")

        items = checkdkim.parse_tag_list("n=café; p=abc")
        self.assertEqual(items[0]["value"], "café")
        self.assertEqual(items[1]["tag_pos"], 9)
        self.assertEqual(items[1]["value_pos"], 11)
        self.assertEqual(items[1]["value"], "abc")

        scanner = checkdkim.tagvalue.Scanner("é")
        self.assertEqual(scanner.next(), "é")
        self.assertEqual(scanner.pos, 2)
        scanner.backup()
        self.assertEqual(scanner.pos, 0)
        self.assertEqual(scanner.peek(), "é")

    def testScannerBackup(self):
        """The scanner can only step back once per character read"""
        scanner = checkdkim.tagvalue.Scanner("ab")
        self.assertEqual(scanner.peek(), "a")
        self.assertEqual(scanner.pos, 0)
        self.assertEqual(scanner.next(), "a")
        scanner.backup()
        self.assertRaises(AssertionError, scanner.backup)
        scanner.accept_run("ab")
        self.assertEqual(scanner.span(), "ab")
        self.assertIs(scanner.next(), checkdkim.tagvalue.EOF)
        scanner.ignore()
        self.assertEqual(scanner.span(), "")

    def testVersion(self):
        """The version tag must be DKIM1 and first"""
        key = checkdkim.parse_dkim_key_record("v=DKIM1; p=")
        self.assertEqual(severities(key["v"]), [])

        key = checkdkim.parse_dkim_key_record("p=; v=DKIM1")
        self.assertEqual(severities(key["v"]), ["danger"])

        key = checkdkim.parse_dkim_key_record("p=")
        self.assertFalse(key["v"]["defined"])
        self.assertEqual(severities(key["v"]), ["warning"])

        key = checkdkim.parse_dkim_key_record("v=DKIM2; p=")
        self.assertEqual(severities(key["v"]), ["danger"])

        key = checkdkim.parse_dkim_key_record("p=; v=dkim1")
        self.assertEqual(severities(key["v"]), ["danger", "danger"])

    def testGranularity(self):
        """The granularity tag is deprecated"""
        key = checkdkim.parse_dkim_key_record("v=DKIM1; g=*; p=")
        self.assertEqual(severities(key["g"]), ["warning"])

        key = checkdkim.parse_dkim_key_record("v=DKIM1; g=user; p=")
        self.assertEqual(severities(key["g"]), ["danger"])
        self.assertEqual(severities(key["v"]), [])

        key = checkdkim.parse_dkim_key_record("v=DKIM1; p=")
        self.assertEqual(severities(key["g"]), [])

    def testHashAlgorithms(self):
        """SHA1 and unknown hash algorithms are warned about"""
        key = checkdkim.parse_dkim_key_record("v=DKIM1; h=sha256:sha1; p=")
        self.assertEqual(severities(key["h"]), ["warning"])
        self.assertIn("SHA1", key["h"]["annotations"][0]["message"])
        self.assertIn(
            f'href="{checkdkim.dkim.RFC_BASE_URL}8301#section-3.1"',
            key["h"]["annotations"][0]["message"],
        )

        key = checkdkim.parse_dkim_key_record("v=DKIM1; h=sha256 : md5; p=")
        self.assertEqual(severities(key["h"]), ["warning"])
        self.assertIn("md5", key["h"]["annotations"][0]["message"])

        key = checkdkim.parse_dkim_key_record("v=DKIM1; h=sha256; p=")
        self.assertEqual(severities(key["h"]), [])

    def testKeyTypes(self):
        """Unknown key types are warned about and their keys are not checked"""
        key = checkdkim.parse_dkim_key_record("v=DKIM1; k=dsa; p=abc")
        self.assertEqual(severities(key["k"]), ["warning"])
        self.assertIn("dsa", key["k"]["annotations"][0]["message"])
        self.assertEqual(severities(key["p"]), [])

    def testRSAKeys(self):
        """RSA keys are checked for size"""
        key = checkdkim.parse_dkim_key_record(key1)
        self.assertEqual(severities(key["v"]), [])
        self.assertEqual(severities(key["p"]), ["warning"])
        self.assertIn("1024 bits", key["p"]["annotations"][0]["message"])
        self.assertTrue(checkdkim.dkim.dkim_key_is_valid(key))

        with mock.patch("checkdkim.dkim.RSA_MINIMUM_KEY_BITS", 2048):
            key = checkdkim.parse_dkim_key_record(key1)
        self.assertEqual(severities(key["p"]), ["danger"])
        self.assertFalse(checkdkim.dkim.dkim_key_is_valid(key))

        private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        key_data = base64.b64encode(
            private_key.public_key().public_bytes(
                Encoding.DER, PublicFormat.SubjectPublicKeyInfo
            )
        ).decode()
        key = checkdkim.parse_dkim_key_record(f"v=DKIM1; k=rsa; p={key_data}")
        self.assertEqual(severities(key["p"]), [])
        self.assertEqual(severities(key["k"]), [])

    def testInvalidKeyData(self):
        """Key data that cannot be decoded or loaded is an error"""
        key = checkdkim.parse_dkim_key_record("v=DKIM1; p=not*base64")
        self.assertEqual(severities(key["p"]), ["danger"])

        key = checkdkim.parse_dkim_key_record("v=DKIM1; p=YWJjZA==")
        self.assertEqual(severities(key["p"]), ["danger"])

        key = checkdkim.parse_dkim_key_record(f"v=DKIM1; p={ed25519_key_data}")
        self.assertEqual(severities(key["p"]), ["danger"])

    def testEd25519Keys(self):
        """Ed25519 keys are 32 bytes of raw key data"""
        key = checkdkim.parse_dkim_key_record(
            f"v=DKIM1; k=ed25519; p={ed25519_key_data}"
        )
        self.assertEqual(severities(key["k"]), [])
        self.assertEqual(severities(key["p"]), [])

        key = checkdkim.parse_dkim_key_record(key1.replace("p=", "k=ed25519; p="))
        self.assertEqual(severities(key["p"]), ["danger"])
        self.assertIn("162 bytes", key["p"]["annotations"][0]["message"])

    def testPublicKeyPresence(self):
        """The public key is required, and empty keys are revoked"""
        key = checkdkim.parse_dkim_key_record("v=DKIM1")
        self.assertFalse(key["p"]["defined"])
        self.assertEqual(severities(key["p"]), ["danger"])
        self.assertFalse(checkdkim.dkim.dkim_key_is_valid(key))

        key = checkdkim.parse_dkim_key_record("v=DKIM1; p=")
        self.assertEqual(severities(key["p"]), ["info"])
        self.assertIn("revoked", key["p"]["annotations"][0]["message"])
        self.assertTrue(checkdkim.dkim.dkim_key_is_valid(key))

    def testServiceTypesAndFlags(self):
        """Service types and flags are checked against known values"""
        key = checkdkim.parse_dkim_key_record("v=DKIM1; s=email; t=s; p=")
        self.assertEqual(severities(key["s"]), [])
        self.assertEqual(severities(key["t"]), [])

        key = checkdkim.parse_dkim_key_record("v=DKIM1; s=*:foo; t=y:s:z; p=")
        self.assertEqual(severities(key["s"]), ["warning"])
        self.assertEqual(severities(key["t"]), ["info", "warning"])
        self.assertIn("testing DKIM", key["t"]["annotations"][0]["message"])

    def testDuplicateAndUnrecognizedTags(self):
        """Duplicate tags are errors and unknown tags are noted"""
        key = checkdkim.parse_dkim_key_record("v=DKIM1; p=; x=1; p=")
        self.assertTrue(key["p"]["duplicate"])
        self.assertEqual(key["p"]["index"], 3)
        self.assertEqual(severities(key["p"]), ["info", "danger"])
        self.assertEqual(list(key["unrecognized"].keys()), ["x"])
        self.assertEqual(severities(key["unrecognized"]["x"]), ["info"])
        for tag in checkdkim.dkim.DKIM_KEY_TAGS:
            self.assertNotIn(tag, key["unrecognized"])

    def testParseErrorInKey(self):
        """A syntax error replaces all fields"""
        key = checkdkim.parse_dkim_key_record("v=DKIM1;\r\np=")
        self.assertEqual(
            key["parse_error"],
            {"message": "malformed folding whitespace", "position": 8},
        )
        for tag in checkdkim.dkim.DKIM_KEY_TAGS:
            self.assertIsNone(key[tag])
        self.assertEqual(key["unrecognized"], {})
        self.assertFalse(checkdkim.dkim.dkim_key_is_valid(key))

        key = checkdkim.parse_dkim_key_record("v=DKIM1; p=")
        self.assertIsNone(key["parse_error"])

    def testAnnotationEscaping(self):
        """Plain messages are escaped and markup is kept"""
        field = checkdkim.parse_tag_map("x=<y>")["x"]
        checkdkim.dkim.add_warning(field, "<b>{value}</b>", value=field["value"])
        checkdkim.dkim.add_info(
            field, checkdkim.dkim.Markup("<b>{value}</b>"), value=field["value"]
        )
        self.assertEqual(
            field["annotations"],
            [
                {"severity": "warning", "message": "&lt;b&gt;&lt;y&gt;&lt;/b&gt;"},
                {"severity": "info", "message": "<b>&lt;y&gt;</b>"},
            ],
        )

    def testAnnotationInternalError(self):
        """A message that cannot be formatted becomes an internal error"""
        field = checkdkim.parse_tag_map("x=1")["x"]
        checkdkim.dkim.add_error(field, checkdkim.dkim.Markup("{missing}"))
        self.assertEqual(len(field["annotations"]), 1)
        self.assertEqual(field["annotations"][0]["severity"], "danger")
        self.assertTrue(
            field["annotations"][0]["message"].startswith("Internal error")
        )

        field = checkdkim.parse_tag_map("x=1")["x"]
        checkdkim.dkim.add_warning(field, "{a.b}", a=1)
        checkdkim.dkim.add_info(field, 42)
        self.assertEqual(severities(field), ["warning", "info"])
        for annotation in field["annotations"]:
            self.assertTrue(annotation["message"].startswith("Internal error"))

    def testAnnotationOrder(self):
        """Annotations are listed in record order"""
        key = checkdkim.parse_dkim_key_record("g=x; p=; v=DKIM1")
        tags = [tag for tag, _field, _annotation in checkdkim.dkim.annotations_for(key)]
        self.assertEqual(tags, ["g", "p", "v"])

        key = checkdkim.parse_dkim_key_record("n=note")
        tags = [tag for tag, _field, _annotation in checkdkim.dkim.annotations_for(key)]
        self.assertEqual(sorted(tags[:2]), ["p", "v"])

    def testNormalizeDomain(self):
        self.assertEqual(
            checkdkim.utils.normalize_domain("Example.COM.\u200b"), "example.com"
        )

    def testCheckDKIM(self):
        """Key records are retrieved from the selector's _domainkey name"""
        resolver = FakeResolver(
            answers=[FakeTXTRecord("v=DKIM1; k=ed25519; ", f"p={ed25519_key_data}")]
        )
        cache = ExpiringDict(max_len=10, max_age_seconds=60)
        results = checkdkim.check_dkim(
            "Example.com", "Brisbane", resolver=resolver, cache=cache
        )
        self.assertTrue(results["valid"])
        self.assertEqual(results["location"], "brisbane._domainkey.example.com")
        self.assertEqual(
            results["record"], f"v=DKIM1; k=ed25519; p={ed25519_key_data}"
        )
        self.assertEqual(
            resolver.queries, [("brisbane._domainkey.example.com", "TXT")]
        )

        checkdkim.check_dkim("example.com", "brisbane", resolver=resolver, cache=cache)
        self.assertEqual(len(resolver.queries), 1)

    def testCheckDKIMMissingRecord(self):
        """Missing key records are reported as errors"""
        cache = ExpiringDict(max_len=10, max_age_seconds=60)
        resolver = FakeResolver(error=dns.resolver.NXDOMAIN())
        results = checkdkim.check_dkim(
            "example.com", "missing", resolver=resolver, cache=cache
        )
        self.assertFalse(results["valid"])
        self.assertIsNone(results["record"])
        self.assertIn("does not exist", results["error"])

        resolver = FakeResolver(error=dns.resolver.NoAnswer())
        self.assertRaises(
            checkdkim.dkim.DKIMKeyRecordNotFound,
            checkdkim.dkim.query_dkim_key_record,
            "example.com",
            "empty",
            resolver=resolver,
            cache=cache,
        )

    def testMultipleDKIMRecords(self):
        """More than one TXT record at a selector raises MultipleDKIMKeyRecords"""
        cache = ExpiringDict(max_len=10, max_age_seconds=60)
        resolver = FakeResolver(
            answers=[FakeTXTRecord("v=DKIM1; p="), FakeTXTRecord("v=DKIM1; p=")]
        )
        self.assertRaises(
            checkdkim.dkim.MultipleDKIMKeyRecords,
            checkdkim.dkim.query_dkim_key_record,
            "example.com",
            "twice",
            resolver=resolver,
            cache=cache,
        )

    def testResultsOutput(self):
        """Results can be written as JSON and CSV"""
        results = checkdkim.check_dkim_key_record(
            "v=DKIM1; g=user; p=", domain="example.com", selector="s1"
        )
        self.assertFalse(results["valid"])

        parsed = json.loads(checkdkim.results_to_json(results))
        self.assertEqual(parsed["key"]["g"]["value"], "user")

        rows = checkdkim.results_to_csv_rows(results)
        self.assertEqual([row["tag"] for row in rows], ["g", "p"])
        self.assertEqual(rows[0]["tag_name"], "Granularity")
        self.assertEqual(rows[0]["severity"], "danger")
        self.assertNotIn("<a", rows[0]["message"])
        self.assertIn('("g=") is deprecated in RFC 6376', rows[0]["message"])

        csv = checkdkim.results_to_csv([results])
        self.assertTrue(csv.startswith("domain,selector,location,valid,error"))

        results = checkdkim.check_dkim_key_record("v=DKIM1;\r\np=")
        rows = checkdkim.results_to_csv_rows(results)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["error"], "malformed folding whitespace at position 8")

    @unittest.skipUnless(os.path.exists("/etc/resolv.conf"), "no network")
    def testCheckDomains(self):
        """Live DNS lookups return results"""
        results = checkdkim.check_domains(["google.com"], ["20230601"])
        self.assertIn("valid", results)


if __name__ == "__main__":
    unittest.main(verbosity=2)
