"""
Command-line entry point — `attest-cert`.

Composition root: loads settings, configures structlog, builds the
CertificateLoader and CryptographyPairVerifier, and runs one subcommand:

  attest-cert identify PATH                 print "pem" or "der"
  attest-cert info PATH                     subject, issuer, format, fingerprint
  attest-cert convert PATH [--to FMT] [-o OUT]
  attest-cert verify SIGNER SIGNEE          exit 0 when SIGNER signs SIGNEE

Exit codes: 0 success, 1 any failure on the Result track, 2 usage or
configuration error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

import structlog
from pydantic import ValidationError

from attest_cert import __version__
from attest_cert.adapters.signature import CryptographyPairVerifier
from attest_cert.config import AppSettings
from attest_cert.detection import CertificateLoader, identify_format
from attest_cert.domain.models import CertFormat, CertificatePair
from attest_cert.domain.ports import CertificateDecoder, PairVerifier
from attest_cert.failure import ErrorCode, FailureDescription
from attest_cert.result import Result

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for human-readable console logging on stderr.

    stdout is reserved for command output (converted certificates, formats).
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _read_file(path: Path) -> Result[bytes]:
    return Result.from_computation(
        path.read_bytes,
        ErrorCode.IO_ERROR,
        f"Cannot read certificate file {str(path)!r}",
    )


def _write_output(data: bytes, output: Path | None) -> Result[int]:
    if output is None:
        return Result.from_computation(
            lambda: sys.stdout.buffer.write(data),
            ErrorCode.IO_ERROR,
            "Cannot write to stdout",
        )
    return Result.from_computation(
        lambda: output.write_bytes(data),
        ErrorCode.IO_ERROR,
        f"Cannot write {str(output)!r}",
    )


def _print_line(text: str) -> Result[int]:
    return _write_output(f"{text}\n".encode("utf-8"), None)


# ─────────────────────── Subcommands ───────────────────────


def run_identify(args: argparse.Namespace, settings: AppSettings) -> Result[int]:
    return (
        _read_file(args.path)
        .flat_map(lambda raw: identify_format(raw, strict_der=settings.strict_der))
        .flat_map(lambda fmt: _print_line(str(fmt)))
    )


def run_info(args: argparse.Namespace, settings: AppSettings, loader: CertificateDecoder) -> Result[int]:
    def describe(raw: bytes) -> Result[str]:
        return Result.combine(
            identify_format(raw, strict_der=settings.strict_der),
            loader.load(raw),
            lambda fmt, cert: (
                f"subject: {cert.subject}\n"
                f"issuer: {cert.issuer}\n"
                f"format: {fmt}\n"
                f"sha256: {cert.fingerprint()}"
            ),
        )

    return _read_file(args.path).flat_map(describe).flat_map(_print_line)


def run_convert(args: argparse.Namespace, settings: AppSettings, loader: CertificateDecoder) -> Result[int]:
    target = settings.output_format if args.to is None else args.to
    return (
        CertFormat.parse(str(target))
        .flat_map(
            lambda fmt: _read_file(args.path)
            .flat_map(loader.load)
            .map(lambda cert: cert.encode(fmt))
        )
        .flat_map(lambda data: _write_output(data, args.output))
    )


def run_verify(
    args: argparse.Namespace,
    loader: CertificateDecoder,
    verifier: PairVerifier,
) -> Result[int]:
    return (
        Result.combine(
            _read_file(args.signer).flat_map(loader.load),
            _read_file(args.signee).flat_map(loader.load),
            CertificatePair,
        )
        .flat_map(verifier.verify)
        .flat_map(lambda pair: _print_line(f"OK: {pair.signer.subject} signs {pair.signee.subject}"))
    )


# ─────────────────────── Argument parsing ───────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="attest-cert",
        description="Identify, convert and pairwise-verify X.509 attestation certificates.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override ATTEST_CERT_LOG_LEVEL")
    parser.add_argument(
        "--strict-der",
        action="store_true",
        default=None,
        help="Reject non-PEM input that does not start with a DER SEQUENCE tag",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    identify = sub.add_parser("identify", help="Print the encoding of a certificate file")
    identify.add_argument("path", type=Path)

    info = sub.add_parser("info", help="Print subject, issuer, format and fingerprint")
    info.add_argument("path", type=Path)

    convert = sub.add_parser("convert", help="Re-encode a certificate as PEM or DER")
    convert.add_argument("path", type=Path)
    convert.add_argument("--to", choices=[str(f) for f in CertFormat], default=None)
    convert.add_argument("-o", "--output", type=Path, default=None)

    verify = sub.add_parser("verify", help="Check that SIGNER's key signs SIGNEE")
    verify.add_argument("signer", type=Path)
    verify.add_argument("signee", type=Path)

    return parser


def _load_settings(args: argparse.Namespace) -> AppSettings:
    overrides: dict[str, object] = {}
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if args.strict_der is not None:
        overrides["strict_der"] = args.strict_der
    return AppSettings(**overrides)


def _report_failure(err: FailureDescription) -> int:
    print(f"error: [{err.code.value}] {err.detail()}", file=sys.stderr)  # noqa: T201
    return EXIT_FAILURE


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run one subcommand and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _load_settings(args)
    except ValidationError as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        return EXIT_USAGE

    configure_structlog(settings.log_level)
    log = structlog.get_logger()
    log.debug("cli.starting", command=args.command, strict_der=settings.strict_der)

    loader = CertificateLoader(strict_der=settings.strict_der)
    verifier = CryptographyPairVerifier()

    match args.command:
        case "identify":
            result = run_identify(args, settings)
        case "info":
            result = run_info(args, settings, loader)
        case "convert":
            result = run_convert(args, settings, loader)
        case "verify":
            result = run_verify(args, loader, verifier)
        case _:
            parser.error(f"unknown command {args.command!r}")

    return result.either(lambda _: EXIT_OK, _report_failure)


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
