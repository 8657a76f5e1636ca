"""
Batch poster sending: one template, many members.

Each (member, designation) pair becomes an independent job: compose the
poster, email it only once the file is fully written, then delete it.
Failures are recorded per member and never stop the rest of the batch.
"""

from __future__ import annotations

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path

from config import settings
from posterkit import member_store
from posterkit.mailer import Mailer
from posterkit.members import InvalidMemberError, Member, expand_designation_filter, split_designations
from posterkit.poster import PosterConfig, PosterRequest, compose_poster

logger = logging.getLogger(__name__)


@dataclass
class MemberResult:
    member: Member
    ok: bool
    kind: str | None = None
    error: str | None = None
    emailed: bool = False
    output_path: Path | None = None

    def to_dict(self) -> dict:
        data = {
            "member_id": self.member.id,
            "name": self.member.name,
            "email": self.member.email,
            "designation": self.member.designation,
            "ok": self.ok,
            "emailed": self.emailed,
        }
        if not self.ok:
            data.update({"kind": self.kind, "error": self.error})
        if self.output_path is not None:
            data["output_path"] = str(self.output_path)
        return data


@dataclass
class BatchReport:
    results: list[MemberResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def sent(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    def to_dict(self) -> dict:
        return {
            "recipientCount": self.total,
            "sent": self.sent,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_")[:40] or "member"


def unique_output_path(output_dir: Path, member: Member, suffix: str = ".jpeg") -> Path:
    return Path(output_dir) / f"final_{_slug(member.id)}_{time.time_ns()}_{_slug(member.name)}{suffix}"


def select_recipients(designation_filter: str, rows: list[dict] | None = None) -> list[Member]:
    """Members targeted by an admin audience choice, with canonical designations.

    ``rows`` restricts the search to the given records instead of the store.
    """
    recipients = []
    for desig in expand_designation_filter(designation_filter):
        if rows is None:
            matches = member_store.find_members_by_designation(desig)
        else:
            matches = [
                r for r in rows
                if desig.lower() in {d.lower() for d in split_designations(r.get("designation"))}
            ]
        for row in matches:
            try:
                member = Member.from_record(row)
            except InvalidMemberError as e:
                logger.warning(f"Skipping invalid member record {row.get('id')}: {e}")
                continue
            recipients.append(replace(member, designation=desig))
    return recipients


def _process_member(
    member: Member,
    template_path: Path,
    output_dir: Path,
    config: PosterConfig,
    mailer,
    send_email: bool,
    keep_output: bool,
) -> MemberResult:
    output_path = unique_output_path(output_dir, member)
    try:
        outcome = compose_poster(
            PosterRequest(template_path=template_path, person=member, output_path=output_path),
            config,
        )
        if not outcome.ok:
            return MemberResult(member, ok=False, kind=outcome.kind, error=outcome.error)

        if not send_email:
            return MemberResult(member, ok=True, output_path=output_path if keep_output else None)

        if not mailer.send_poster(member, outcome.path, config.brand):
            return MemberResult(member, ok=False, kind="email_failed", error=f"could not email {member.email}")
        logger.info(f"Poster sent to {member.name} <{member.email}>")
        return MemberResult(member, ok=True, emailed=True)
    except Exception as e:
        logger.error(f"Failed for {member.name}: {e}", exc_info=True)
        return MemberResult(member, ok=False, kind="unexpected", error=str(e))
    finally:
        if not keep_output:
            output_path.unlink(missing_ok=True)


def run_batch(
    template_path: Path,
    recipients: list[Member],
    *,
    mailer=None,
    config: PosterConfig | None = None,
    output_dir: Path | None = None,
    workers: int | None = None,
    send_email: bool = True,
    keep_output: bool = False,
) -> BatchReport:
    """Compose (and optionally email) one poster per recipient.

    Results keep the order of ``recipients``.
    """
    config = config or PosterConfig.from_settings()
    output_dir = Path(output_dir or settings.OUTPUT_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)
    workers = max(1, workers or settings.POSTER_WORKERS)
    if send_email and mailer is None:
        mailer = Mailer()

    logger.info(f"Generating {len(recipients)} posters from {Path(template_path).name} ({workers} workers)")
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(
                _process_member,
                member,
                Path(template_path),
                output_dir,
                config,
                mailer,
                send_email,
                keep_output,
            )
            for member in recipients
        ]
        report = BatchReport(results=[f.result() for f in futures])

    logger.info(f"Batch finished: {report.sent} ok, {report.failed} failed of {report.total}")
    return report
