# -*- coding: utf-8 -*-

"""Parses and validates DKIM key records"""

from __future__ import annotations

import html
import json
import logging
import re
from csv import DictWriter
from io import StringIO
from time import sleep
from typing import Optional, Union
from collections.abc import Sequence

import dns.resolver
from dns.nameserver import Nameserver

import checkdkim._constants
from checkdkim.dkim import (
    DKIMErrorResults,
    DKIMResults,
    annotations_for,
    check_dkim,
    check_dkim_key_record,
    dkim_key_tags,
    parse_dkim_key_record,
)
from checkdkim.tagvalue import (
    TagValueError,
    TagValueSyntaxError,
    parse_tag_list,
    parse_tag_map,
)
from checkdkim.utils import normalize_domain

"""Copyright 2019-2023 Sean Whalen

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

   https://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License."""


__version__ = checkdkim._constants.__version__

__all__ = [
    "TagValueError",
    "TagValueSyntaxError",
    "check_dkim",
    "check_dkim_key_record",
    "check_domains",
    "output_to_file",
    "parse_dkim_key_record",
    "parse_tag_list",
    "parse_tag_map",
    "results_to_csv",
    "results_to_csv_rows",
    "results_to_json",
]

MARKUP_TAG_REGEX = re.compile(r"<[^>]+>")

DKIMCheckResults = Union[DKIMResults, DKIMErrorResults]


def check_domains(
    domains: list[str],
    selectors: Sequence[str] = ("default",),
    *,
    nameservers: Optional[Sequence[str | Nameserver]] = None,
    resolver: Optional[dns.resolver.Resolver] = None,
    timeout: float = 2.0,
    timeout_retries: int = 2,
    wait: float = 0.0,
) -> Union[DKIMCheckResults, list[DKIMCheckResults]]:
    """
    Check the DKIM key records of the given selectors on the given domains

    Args:
        domains (list): A list of domains to check
        selectors (list): A list of DKIM selectors to check on each domain
        nameservers (list): A list of nameservers to query
        resolver (dns.resolver.Resolver): A resolver object to use for DNS
                                          requests
        timeout (float): number of seconds to wait for an answer from DNS
        timeout_retries (int): The number of times to reattempt a query after a timeout
        wait (float): number of seconds to wait between processing domains

    Returns:
       A ``dict`` or ``list`` of ``dict`` as returned by
       :func:`checkdkim.dkim.check_dkim`
    """
    domains = sorted(
        list(
            set(
                map(
                    lambda d: normalize_domain(d.rstrip(".\r\n").strip().split(",")[0]),
                    domains,
                )
            )
        )
    )
    while "" in domains:
        domains.remove("")
    results = []
    for domain in domains:
        logging.debug(f"Checking: {domain}")
        for selector in selectors:
            results.append(
                check_dkim(
                    domain,
                    selector,
                    nameservers=nameservers,
                    resolver=resolver,
                    timeout=timeout,
                    timeout_retries=timeout_retries,
                )
            )
        if wait > 0.0:
            logging.debug(f"Sleeping for {wait} seconds")
            sleep(wait)
    if len(results) == 1:
        results = results[0]

    return results


def results_to_json(
    results: Union[DKIMCheckResults, list[DKIMCheckResults]],
) -> str:
    """
    Converts a dictionary of results or list of results to a JSON string

    Args:
        results (dict): A dictionary of results

    Returns:
        str: Results in JSON format
    """
    return json.dumps(results, ensure_ascii=False, indent=2)


def _markup_to_text(message: str) -> str:
    return html.unescape(MARKUP_TAG_REGEX.sub("", message))


def results_to_csv_rows(
    results: Union[DKIMCheckResults, list[DKIMCheckResults]],
) -> list[dict]:
    """
    Converts a results dictionary or list of dictionaries and returns a
    list of CSV row dictionaries, with one row per annotation

    Args:
        results (dict): A dictionary of results

    Returns:
        list: A list of CSV row dictionaries
    """
    rows = []

    if type(results) is dict:
        results = [results]

    for result in results:
        row = {
            "domain": result["domain"],
            "selector": result["selector"],
            "location": result["location"],
            "valid": result["valid"],
        }
        if "error" in result:
            row["error"] = result["error"]
            rows.append(row)
            continue
        key = result["key"]
        if key["parse_error"] is not None:
            row["error"] = (
                f"{key['parse_error']['message']} at position "
                f"{key['parse_error']['position']}"
            )
            rows.append(row)
            continue
        annotations = list(annotations_for(key))
        if len(annotations) == 0:
            rows.append(row)
        for tag, field, annotation in annotations:
            annotation_row = row.copy()
            annotation_row["tag"] = tag
            annotation_row["tag_name"] = dkim_key_tags.get(tag, {}).get("name")
            annotation_row["value"] = field["value"]
            annotation_row["severity"] = annotation["severity"]
            annotation_row["message"] = _markup_to_text(annotation["message"])
            rows.append(annotation_row)
    return rows


def results_to_csv(
    results: Union[DKIMCheckResults, list[DKIMCheckResults]],
) -> str:
    """
    Converts a dictionary of results to CSV

    Args:
        results (dict): A dictionary of results

    Returns:
        str: A CSV of results
    """
    fields = [
        "domain",
        "selector",
        "location",
        "valid",
        "error",
        "tag",
        "tag_name",
        "value",
        "severity",
        "message",
    ]
    output = StringIO(newline="\n")
    writer = DictWriter(output, fieldnames=fields)
    writer.writeheader()
    rows = results_to_csv_rows(results)
    writer.writerows(rows)
    output.flush()

    return output.getvalue()


def output_to_file(path: str, content: str):
    """
    Write given content to the given path

    Args:
        path (str): A file path
        content (str): JSON or CSV text
    """
    with open(
        path, "w", newline="\n", encoding="utf-8", errors="ignore"
    ) as output_file:
        output_file.write(content)
