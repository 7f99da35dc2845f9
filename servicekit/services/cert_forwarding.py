"""Client-certificate forwarding for TLS terminated at a reverse proxy.

Proxies such as Azure App Service (ARR) terminate TLS and forward the
client certificate as base64-encoded DER in a request header. The helpers
here decode that header into a :class:`cryptography.x509.Certificate` and
expose it on ``request.state.client_certificate``.
"""

import base64
import binascii
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Set

from cryptography import x509
from fastapi import FastAPI, Request


logger = logging.getLogger(__name__)

DEFAULT_CERTIFICATE_HEADER = "X-ARR-ClientCert"

CertificateLoader = Callable[[bytes], x509.Certificate]
HeaderConverter = Callable[[Optional[str]], Optional[x509.Certificate]]


def decoded_length_upper_bound(text: str) -> int:
    """Upper bound on the bytes decoded from base64 ``text``.

    Three bytes per four characters, less one byte per trailing ``=``.
    """
    padding = 0
    if text.endswith("=="):
        padding = 2
    elif text.endswith("="):
        padding = 1
    return max(len(text) * 3 // 4 - padding, 0)


class BufferPool:
    """Thread-safe pool of reusable ``bytearray`` scratch buffers.

    Buffers are sized in powers of two and may be larger than requested.
    Returned buffers are zeroed before reuse.
    """

    MIN_BUFFER_SIZE = 256

    def __init__(self, max_retained: int = 32):
        self._lock = threading.Lock()
        self._free: List[bytearray] = []
        self._leased: Set[int] = set()
        self._max_retained = max_retained
        self.rented = 0
        self.returned = 0

    @property
    def outstanding(self) -> int:
        return self.rented - self.returned

    @staticmethod
    def _bucket_size(min_size: int) -> int:
        size = BufferPool.MIN_BUFFER_SIZE
        while size < min_size:
            size *= 2
        return size

    def rent(self, min_size: int) -> bytearray:
        if min_size < 0:
            raise ValueError(f"Buffer size must be non-negative, got {min_size}")
        with self._lock:
            buffer = None
            for index, candidate in enumerate(self._free):
                if len(candidate) >= min_size:
                    buffer = self._free.pop(index)
                    break
            if buffer is None:
                buffer = bytearray(self._bucket_size(min_size))
            self._leased.add(id(buffer))
            self.rented += 1
        return buffer

    def give_back(self, buffer: bytearray) -> None:
        with self._lock:
            if id(buffer) not in self._leased:
                raise ValueError("Buffer was not rented from this pool")
            self._leased.discard(id(buffer))
            self.returned += 1
            memoryview(buffer)[:] = bytes(len(buffer))
            if len(self._free) < self._max_retained:
                self._free.append(buffer)

    @contextmanager
    def lease(self, min_size: int) -> Iterator[bytearray]:
        buffer = self.rent(min_size)
        try:
            yield buffer
        finally:
            self.give_back(buffer)


shared_pool = BufferPool()


def load_der_certificate(data: bytes) -> x509.Certificate:
    return x509.load_der_x509_certificate(data)


def decode_certificate_header(
    value: Optional[str],
    *,
    pool: Optional[BufferPool] = None,
    loader: CertificateLoader = load_der_certificate,
    strict: bool = False,
) -> Optional[x509.Certificate]:
    """Decode a forwarded certificate header value.

    Returns None for a missing or blank header, invalid base64, or an empty
    payload. When ``loader`` rejects the decoded bytes the result is None,
    unless ``strict`` is set, in which case the loader's error propagates.

    The decoded bytes are staged in a buffer leased from ``pool`` so that
    every call rents and returns exactly once. ``b64decode`` has no
    decode-into form, so the lease does not save an allocation.
    """
    if value is None or not value.strip():
        return None

    text = value.strip()
    pool = pool or shared_pool

    with pool.lease(decoded_length_upper_bound(text)) as buffer:
        try:
            decoded = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError):
            logger.debug("Ignoring client certificate header that is not valid base64")
            return None

        written = len(decoded)
        if written == 0:
            return None
        buffer[:written] = decoded

        try:
            return loader(bytes(memoryview(buffer)[:written]))
        except ValueError as e:
            if strict:
                raise
            logger.warning(f"Ignoring forwarded client certificate that could not be parsed: {e}")
            return None


@dataclass(frozen=True)
class CertificateForwardingOptions:
    header_name: str
    header_converter: HeaderConverter
    strict: bool = False


def _certificate_from_scope(request: Request, strict: bool = False) -> Optional[x509.Certificate]:
    tls = request.scope.get("extensions", {}).get("tls") or {}
    chain = tls.get("client_cert_chain") or []
    if not chain:
        return None
    try:
        return x509.load_pem_x509_certificate(chain[0].encode("ascii"))
    except ValueError as e:
        if strict:
            raise
        logger.warning(f"Ignoring TLS client certificate that could not be parsed: {e}")
        return None


def add_arr_client_cert_forwarding(
    app: FastAPI,
    header_name: str = DEFAULT_CERTIFICATE_HEADER,
    *,
    pool: Optional[BufferPool] = None,
    strict: bool = False,
) -> CertificateForwardingOptions:
    """Read the client certificate from ``header_name`` on every request.

    A certificate presented directly to the server during the TLS handshake
    takes precedence over the forwarded header.
    """
    if not header_name or not header_name.strip():
        raise ValueError("Certificate header name must not be blank")

    def _convert(value: Optional[str]) -> Optional[x509.Certificate]:
        return decode_certificate_header(value, pool=pool, strict=strict)

    options = CertificateForwardingOptions(header_name=header_name, header_converter=_convert, strict=strict)

    @app.middleware("http")
    async def _forward_client_certificate(request: Request, call_next: Callable):
        certificate = _certificate_from_scope(request, strict=options.strict)
        if certificate is None:
            certificate = options.header_converter(request.headers.get(options.header_name))
        request.state.client_certificate = certificate
        return await call_next(request)

    app.state.certificate_forwarding = options
    return options


def get_client_certificate(request: Request) -> Optional[x509.Certificate]:
    return getattr(request.state, "client_certificate", None)
