# -*- coding: utf-8 -*-
"""DKIM public key record validation

Sanity checks DKIM keys for compliance with RFCs 6376, 8301, 8463, 8553 and
8616
"""

from __future__ import annotations

import base64
import binascii
import html
import logging
from collections.abc import Callable, Iterator, Sequence
from typing import Optional, TypedDict, Union, Literal

import dns.exception
import dns.resolver
from dns.nameserver import Nameserver
from expiringdict import ExpiringDict
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ed25519, rsa
from cryptography.hazmat.primitives.serialization import load_der_public_key

from checkdkim._constants import (
    ED25519_KEY_BYTES,
    RFC_BASE_URL,
    RSA_MINIMUM_KEY_BITS,
    RSA_RECOMMENDED_KEY_BITS,
)
from checkdkim.tagvalue import (
    Annotation,
    Field,
    Severity,
    TagValueSyntaxError,
    parse_tag_map,
)
from checkdkim.utils import (
    DNSException,
    DNSExceptionNXDOMAIN,
    get_txt_records,
    normalize_domain,
)

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

DKIM_KEY_TAGS = ("v", "g", "h", "k", "n", "p", "s", "t")
FWS_CHARS = " \t\r\n"


class DKIMError(Exception):
    """Raised when a fatal DKIM error occurs"""

    def __init__(self, msg: str, data: Optional[dict] = None):
        """
        Args:
            msg (str): The error message
            data (dict): A dictionary of data to include in the results
        """
        self.data = data
        Exception.__init__(self, msg)


class DKIMKeyRecordNotFound(DKIMError):
    """Raised when a DKIM key record could not be found"""

    def __init__(self, error):
        if isinstance(error, dns.exception.Timeout):
            error.kwargs["timeout"] = round(error.kwargs["timeout"], 1)
        DKIMError.__init__(self, str(error))


class MultipleDKIMKeyRecords(DKIMError):
    """Raised when more than one TXT record is published for a selector"""


class Markup(str):
    """An annotation message that is already safe to include in HTML"""


class ParseErrorDetails(TypedDict):
    message: str
    position: int


class DkimKey(TypedDict):
    """A DKIM public key record, as published to DNS, annotated for display"""

    v: Optional[Field]
    g: Optional[Field]
    h: Optional[Field]
    k: Optional[Field]
    n: Optional[Field]
    p: Optional[Field]
    s: Optional[Field]
    t: Optional[Field]
    unrecognized: dict[str, Field]
    parse_error: Optional[ParseErrorDetails]


class DKIMKeyQueryResults(TypedDict):
    record: str
    location: str


class DKIMResults(TypedDict):
    """Success return type for check_dkim"""

    domain: Optional[str]
    selector: Optional[str]
    location: Optional[str]
    record: str
    valid: bool
    key: DkimKey


class DKIMErrorResults(TypedDict):
    """Error return type for check_dkim"""

    domain: str
    selector: str
    location: str
    record: None
    valid: Literal[False]
    error: str


dkim_key_tags = {
    "v": {
        "name": "Version",
        "required": False,
        "default": "DKIM1",
        "description": (
            "Version of the DKIM key record. If specified, this tag MUST be "
            'set to "DKIM1" and MUST be the first tag in the record.'
        ),
    },
    "g": {
        "name": "Granularity",
        "required": False,
        "default": "*",
        "description": (
            "Granularity of the key, matched against the local-part of the "
            "signing identity. Removed by RFC 6376."
        ),
    },
    "h": {
        "name": "Acceptable Hash Algorithms",
        "required": False,
        "default": "sha256",
        "description": (
            "A colon-separated list of hash algorithms that might be used. "
            "Unrecognized algorithms MUST be ignored."
        ),
    },
    "k": {
        "name": "Key Type",
        "required": False,
        "default": "rsa",
        "description": (
            'The key type. "rsa" (RFC 6376) and "ed25519" (RFC 8463) are '
            "defined."
        ),
    },
    "n": {
        "name": "Notes",
        "required": False,
        "description": "Notes that might be of interest to a human.",
    },
    "p": {
        "name": "Public Key Data",
        "required": True,
        "description": (
            "The base64 encoded public key. An empty value means that this "
            "public key has been revoked."
        ),
    },
    "s": {
        "name": "Service Type",
        "required": False,
        "default": "*",
        "description": (
            "A colon-separated list of service types to which this record "
            'applies. "*" matches all service types, "email" only '
            "electronic mail."
        ),
    },
    "t": {
        "name": "Flags",
        "required": False,
        "description": (
            'A colon-separated list of flags. "y" means this domain is '
            'testing DKIM, "s" forbids subdomains in the i= identity.'
        ),
    },
}

KNOWN_SERVICE_TYPES = ("*", "email")
KNOWN_FLAGS = ("y", "s")


def rfc_link(rfc: int, anchor: str, text: str) -> Markup:
    """
    Builds a link to a section of an RFC

    Args:
        rfc (int): The RFC number
        anchor (str): The fragment, e.g. ``section-3.6.1``
        text (str): The link text

    Returns:
        Markup: An HTML link
    """
    url = html.escape(f"{RFC_BASE_URL}{rfc}#{anchor}")
    return Markup(f'<a href="{url}">{html.escape(text)}</a>')


def _escape(value) -> str:
    if isinstance(value, Markup):
        return value
    return html.escape(str(value))


def annotate(
    field: Field, severity: Severity, message: Union[str, Markup], **data
) -> None:
    """
    Appends an annotation to a field

    ``message`` is formatted with ``data`` using :meth:`str.format`.
    Plain ``str`` messages are HTML escaped after formatting; ``Markup``
    messages are trusted, and only the substituted values are escaped.

    Args:
        field (dict): The field to annotate
        severity (str): ``danger``, ``warning`` or ``info``
        message (str): The message
        data: Values to substitute into the message
    """
    try:
        if isinstance(message, Markup):
            escaped = {key: _escape(value) for key, value in data.items()}
            text = message.format(**escaped)
        else:
            text = html.escape(message.format(**data))
    except (KeyError, IndexError, ValueError, AttributeError, TypeError) as error:
        text = html.escape(f"Internal error in annotation {message!r}: {error!r}")
    annotation: Annotation = {"severity": severity, "message": text}
    field["annotations"].append(annotation)


def add_error(field: Field, message: Union[str, Markup], **data) -> None:
    annotate(field, "danger", message, **data)


def add_warning(field: Field, message: Union[str, Markup], **data) -> None:
    annotate(field, "warning", message, **data)


def add_info(field: Field, message: Union[str, Markup], **data) -> None:
    annotate(field, "info", message, **data)


def _undefined_field(tag: str) -> Field:
    return {
        "tag": tag,
        "value": "",
        "tag_pos": 0,
        "value_pos": 0,
        "index": 0,
        "duplicate": False,
        "defined": False,
        "annotations": [],
    }


def _split_list(value: str) -> list[str]:
    return [token.strip(FWS_CHARS) for token in value.split(":")]


def _decode_key_data(field: Field) -> Optional[bytes]:
    key_data = "".join(field["value"].split())
    try:
        return base64.b64decode(key_data, validate=True)
    except (binascii.Error, ValueError):
        add_error(field, "The public key data is not valid base64")
        return None


def _check_rsa_key(field: Field) -> None:
    key_data = _decode_key_data(field)
    if key_data is None:
        return
    try:
        public_key = load_der_public_key(key_data)
    except (ValueError, UnsupportedAlgorithm):
        add_error(
            field,
            Markup("The public key data is not a valid {link}"),
            link=rfc_link(6376, "section-3.6.1", "RSA public key"),
        )
        return
    if not isinstance(public_key, rsa.RSAPublicKey):
        add_error(field, "The public key data is not an RSA key")
        return

    bits = public_key.key_size
    if bits < RSA_MINIMUM_KEY_BITS:
        add_error(
            field,
            Markup("RSA keys {link}; this key is {bits} bits"),
            link=rfc_link(
                8301,
                "section-3.2",
                f"must be at least {RSA_MINIMUM_KEY_BITS} bits long",
            ),
            bits=bits,
        )
    elif bits < RSA_RECOMMENDED_KEY_BITS:
        add_warning(
            field,
            Markup("RSA keys {link}; this key is {bits} bits"),
            link=rfc_link(
                8301,
                "section-3.2",
                f"should be at least {RSA_RECOMMENDED_KEY_BITS} bits long",
            ),
            bits=bits,
        )


def _check_ed25519_key(field: Field) -> None:
    key_data = _decode_key_data(field)
    if key_data is None:
        return
    if len(key_data) != ED25519_KEY_BYTES:
        add_error(
            field,
            Markup("Ed25519 public keys are {link}; this key is {length} bytes"),
            link=rfc_link(
                8463, "section-4.2", f"{ED25519_KEY_BYTES} bytes of raw key data"
            ),
            length=len(key_data),
        )
        return
    try:
        ed25519.Ed25519PublicKey.from_public_bytes(key_data)
    except (ValueError, UnsupportedAlgorithm):
        add_error(field, "The public key data is not a valid Ed25519 public key")


# Checks of the public key data, keyed by key type
key_type_checks: dict[str, Callable[[Field], None]] = {
    "rsa": _check_rsa_key,
    "ed25519": _check_ed25519_key,
}


def _check_version(key: DkimKey) -> None:
    field = key["v"]
    if field["defined"]:
        if field["value"] != "DKIM1":
            add_error(
                field,
                Markup("The version field must be {link}"),
                link=rfc_link(6376, "section-3.6.1", "DKIM1"),
            )
        if field["index"] != 0:
            add_error(
                field,
                Markup("The version tag must be the {link}"),
                link=rfc_link(6376, "section-3.6.1", "first tag in the record"),
            )
    else:
        add_warning(field, "DKIM key records should ideally have a version field")


def _check_granularity(key: DkimKey) -> None:
    field = key["g"]
    if not field["defined"]:
        return
    if field["value"] == "*":
        add_warning(
            field,
            Markup('The granularity field ("g=*") is deprecated in {link}'),
            link=rfc_link(6376, "appendix-C.2", "RFC 6376"),
        )
    else:
        add_error(
            field,
            Markup(
                'The granularity field ("g=") is deprecated in {link} and '
                "this value will be treated differently by pre-6376 and "
                "post-6376 validators"
            ),
            link=rfc_link(6376, "appendix-C.2", "RFC 6376"),
        )


def _check_hash_algorithms(key: DkimKey) -> None:
    field = key["h"]
    if not field["defined"]:
        return
    for algorithm in _split_list(field["value"]):
        if algorithm == "sha256":
            continue
        if algorithm == "sha1":
            add_warning(
                field,
                Markup(
                    "SHA1 is {link}, mail using it may fail DKIM now or in "
                    "the future"
                ),
                link=rfc_link(8301, "section-3.1", "not a trusted hash"),
            )
        else:
            add_warning(
                field,
                "'{algorithm}' isn't a hash algorithm I recognize",
                algorithm=algorithm,
            )


def _check_public_key(key: DkimKey) -> None:
    key_type = "rsa"
    if key["k"]["defined"]:
        key_type = key["k"]["value"]
        if key_type not in key_type_checks:
            add_warning(
                key["k"], "'{key_type}' isn't a key type I recognize", key_type=key_type
            )

    field = key["p"]
    if not field["defined"]:
        add_error(
            field,
            Markup("The {link} field is required"),
            link=rfc_link(6376, "section-3.6.1", "public key data (p=)"),
        )
        return
    if field["value"] == "":
        add_info(
            field,
            Markup("An empty public key field means that this key has been {link}"),
            link=rfc_link(6376, "section-3.6.1", "revoked"),
        )
        return
    if key_type in key_type_checks:
        key_type_checks[key_type](field)


def _check_service_types(key: DkimKey) -> None:
    field = key["s"]
    if not field["defined"]:
        return
    for service_type in _split_list(field["value"]):
        if service_type not in KNOWN_SERVICE_TYPES:
            add_warning(
                field,
                "'{service_type}' isn't a service type I recognize",
                service_type=service_type,
            )


def _check_flags(key: DkimKey) -> None:
    field = key["t"]
    if not field["defined"]:
        return
    for flag in _split_list(field["value"]):
        if flag == "y":
            add_info(
                field,
                Markup(
                    "This domain is {link}; verifiers may treat mail signed "
                    "with this key as unsigned"
                ),
                link=rfc_link(6376, "section-3.6.1", "testing DKIM"),
            )
        elif flag not in KNOWN_FLAGS:
            add_warning(field, "'{flag}' isn't a flag I recognize", flag=flag)


def _check_duplicates(key: DkimKey) -> None:
    for field in _all_fields(key):
        if field["duplicate"]:
            add_error(
                field,
                Markup('The "{tag}" tag {link}; only the last value is shown'),
                tag=field["tag"],
                link=rfc_link(6376, "section-3.2", "appears more than once"),
            )


def _check_unrecognized(key: DkimKey) -> None:
    for field in key["unrecognized"].values():
        add_info(
            field,
            "'{tag}' isn't a DKIM key tag, so verifiers will ignore it",
            tag=field["tag"],
        )


def _all_fields(key: DkimKey) -> list[Field]:
    fields = [key[tag] for tag in DKIM_KEY_TAGS if key[tag] is not None]
    fields += list(key["unrecognized"].values())
    return fields


def parse_dkim_key_record(record: str) -> DkimKey:
    """
    Parses and annotates a DKIM public key record

    .. note::
        Problems with the meaning of tags never raise exceptions. They are
        added to the ``annotations`` of the relevant field instead.

    Args:
        record (str): The text of a DKIM key record, with multiple TXT
                      strings already joined

    Returns:
        dict: a ``dict`` with the following keys:
         - ``v``, ``g``, ``h``, ``k``, ``n``, ``p``, ``s``, ``t`` - The
           field for each DKIM key tag; see
           :func:`checkdkim.tagvalue.parse_tag_map`. Tags that do not
           appear have ``defined`` set to ``False``
         - ``unrecognized`` - A ``dict`` of any other tags
         - ``parse_error`` - ``None``, or a ``dict`` with the ``message``
           and ``position`` of a syntax error. If set, the tag fields are
           ``None`` and ``unrecognized`` is empty
    """
    try:
        fields = parse_tag_map(record)
    except TagValueSyntaxError as error:
        key: DkimKey = {tag: None for tag in DKIM_KEY_TAGS}
        key["unrecognized"] = {}
        key["parse_error"] = {"message": error.message, "position": error.pos}
        return key

    key = {tag: fields.pop(tag, None) or _undefined_field(tag) for tag in DKIM_KEY_TAGS}
    key["unrecognized"] = fields
    key["parse_error"] = None

    _check_version(key)
    _check_granularity(key)
    _check_hash_algorithms(key)
    _check_public_key(key)
    _check_service_types(key)
    _check_flags(key)
    _check_duplicates(key)
    _check_unrecognized(key)

    return key


def annotations_for(key: DkimKey) -> Iterator[tuple[str, Field, Annotation]]:
    """
    Yields the annotations of a parsed key in record order

    Annotations on tags that do not appear in the record come first.

    Args:
        key (dict): The output of
                    :func:`checkdkim.dkim.parse_dkim_key_record`

    Yields:
        tuple: The tag, its field, and an annotation
    """
    fields = sorted(
        _all_fields(key), key=lambda f: (f["defined"], f["index"])
    )
    for field in fields:
        for annotation in field["annotations"]:
            yield field["tag"], field, annotation


def dkim_key_is_valid(key: DkimKey) -> bool:
    """Returns ``False`` if a key has a syntax error or any ``danger``
    annotation"""
    if key["parse_error"] is not None:
        return False
    for _tag, _field, annotation in annotations_for(key):
        if annotation["severity"] == "danger":
            return False
    return True


def query_dkim_key_record(
    domain: str,
    selector: str,
    *,
    nameservers: Optional[Sequence[Union[str, Nameserver]]] = None,
    resolver: Optional[dns.resolver.Resolver] = None,
    timeout: float = 2.0,
    timeout_retries: int = 2,
    cache: Optional[ExpiringDict] = None,
) -> DKIMKeyQueryResults:
    """
    Queries DNS for a DKIM key record

    Args:
        domain (str): A domain name
        selector (str): The DKIM selector
        nameservers (list): A list of nameservers to query
        resolver (dns.resolver.Resolver): A resolver object to use for DNS
                                          requests
        timeout (float): number of seconds to wait for a record from DNS
        timeout_retries (int): The number of times to reattempt a query after a timeout
        cache (ExpiringDict): Cache storage

    Returns:
        dict: a ``dict`` with the following keys:
                     - ``record`` - the unparsed DKIM key record string
                     - ``location`` - the name where the record was found

    Raises:
        :exc:`checkdkim.dkim.DKIMKeyRecordNotFound`
        :exc:`checkdkim.dkim.MultipleDKIMKeyRecords`
    """
    domain = normalize_domain(domain)
    target = f"{normalize_domain(selector)}._domainkey.{domain}"
    logging.debug(f"Checking for a DKIM key record at {target}")

    try:
        records = get_txt_records(
            target,
            nameservers=nameservers,
            resolver=resolver,
            timeout=timeout,
            timeout_retries=timeout_retries,
            cache=cache,
        )
    except DNSExceptionNXDOMAIN:
        raise DKIMKeyRecordNotFound(f"A DKIM key record does not exist at {target}.")
    except DNSException as error:
        raise DKIMKeyRecordNotFound(error)

    if len(records) == 0:
        raise DKIMKeyRecordNotFound(f"A DKIM key record does not exist at {target}.")
    if len(records) > 1:
        raise MultipleDKIMKeyRecords(
            f"Multiple TXT records were found at {target}; verifiers may "
            "use any of them or fail - "
            "https://www.rfc-editor.org/rfc/rfc6376#section-3.6.2.2",
            data={"target": target},
        )

    return {"record": records[0], "location": target}


def check_dkim_key_record(
    record: str,
    *,
    domain: Optional[str] = None,
    selector: Optional[str] = None,
    location: Optional[str] = None,
) -> DKIMResults:
    """
    Parses and validates a DKIM key record that has already been retrieved

    Args:
        record (str): A DKIM key record
        domain (str): The domain the record belongs to
        selector (str): The DKIM selector
        location (str): The name where the record was found

    Returns:
        dict: a ``dict`` with the following keys:
         - ``domain`` - The domain
         - ``selector`` - The selector
         - ``location`` - The name where the record was found
         - ``record`` - The record
         - ``valid`` - ``False`` if there is a syntax error or any ``danger``
           annotation
         - ``key`` - See :func:`checkdkim.dkim.parse_dkim_key_record`
    """
    key = parse_dkim_key_record(record)
    return {
        "domain": domain,
        "selector": selector,
        "location": location,
        "record": record,
        "valid": dkim_key_is_valid(key),
        "key": key,
    }


def check_dkim(
    domain: str,
    selector: str = "default",
    *,
    nameservers: Optional[Sequence[Union[str, Nameserver]]] = None,
    resolver: Optional[dns.resolver.Resolver] = None,
    timeout: float = 2.0,
    timeout_retries: int = 2,
    cache: Optional[ExpiringDict] = None,
) -> Union[DKIMResults, DKIMErrorResults]:
    """
    Returns a dictionary with a parsed DKIM key record or an error

    Args:
        domain (str): A domain name
        selector (str): The DKIM selector
        nameservers (list): A list of nameservers to query
        resolver (dns.resolver.Resolver): A resolver object to use for DNS
                                          requests
        timeout (float): number of seconds to wait for an answer from DNS
        timeout_retries (int): The number of times to reattempt a query after a timeout
        cache (ExpiringDict): Cache storage

    Returns:
        dict: The output of :func:`checkdkim.dkim.check_dkim_key_record`

              If the record cannot be retrieved, the dictionary will have
              the following keys:

              - ``domain`` - The domain
              - ``selector`` - The selector
              - ``location`` - The name that was queried
              - ``record`` - ``None``
              - ``valid`` - ``False``
              - ``error`` - The error message
    """
    domain = normalize_domain(domain)
    location = f"{normalize_domain(selector)}._domainkey.{domain}"
    try:
        query = query_dkim_key_record(
            domain,
            selector,
            nameservers=nameservers,
            resolver=resolver,
            timeout=timeout,
            timeout_retries=timeout_retries,
            cache=cache,
        )
    except DKIMError as error:
        failure: DKIMErrorResults = {
            "domain": domain,
            "selector": selector,
            "location": location,
            "record": None,
            "valid": False,
            "error": str(error),
        }
        return failure

    logging.debug(f"Parsing the DKIM key record at {query['location']}")
    return check_dkim_key_record(
        query["record"],
        domain=domain,
        selector=selector,
        location=query["location"],
    )
