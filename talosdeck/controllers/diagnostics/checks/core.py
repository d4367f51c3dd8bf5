"""Core diagnostic checks that run on any Talos node.

These checks do not depend on which network fabric or addons are installed.
"""

from __future__ import annotations

from talosdeck.constants.defaults import KUBELET_SERVICE, MEMINFO_PATH
from talosdeck.constants.enums import CheckCategory, SourceTier
from talosdeck.controllers.diagnostics.engine import CheckSpec
from talosdeck.controllers.diagnostics.parsers import MetricParser, PodParser
from talosdeck.models.diagnostics.check import DiagnosticCheck, DiagnosticFix, FixAction
from talosdeck.models.diagnostics.context import (
    SOURCE_CERTIFICATES,
    SOURCE_CPU_INFO,
    SOURCE_K8S,
    SOURCE_LOAD_AVG,
    SOURCE_MEMBERS,
    SOURCE_MEMORY,
    SOURCE_SERVICES,
    DiagnosticContext,
    EvidenceUnavailable,
)
from talosdeck.models.quorum.quorum_state import compute_quorum

_GIB = 1_073_741_824
_SECONDS_PER_DAY = 86_400

_RUNNING_STATES = ("Running", "Finished")


def check_memory(ctx: DiagnosticContext) -> DiagnosticCheck:
    """Memory usage from ``/proc/meminfo``, falling back to the memory metric."""
    info = None
    tier = SourceTier.STATE_FILE
    meminfo = ctx.file(MEMINFO_PATH)
    if meminfo is not None:
        info = MetricParser.parse_meminfo(meminfo)
    if info is None:
        info = ctx.need(ctx.memory, SOURCE_MEMORY)
        tier = SourceTier.API

    settings = ctx.settings
    usage = info.usage_percent
    msg = (
        f"{info.used_bytes / _GIB:.1f} / {info.total_bytes / _GIB:.1f} GB ({usage:.0f}%)"
    )
    if usage > settings.memory_fail_pct:
        result = DiagnosticCheck.fail("memory", "Memory", msg)
    elif usage > settings.memory_warn_pct:
        result = DiagnosticCheck.warn("memory", "Memory", msg)
    else:
        result = DiagnosticCheck.passed("memory", "Memory", msg)
    return result.model_copy(update={"tier": tier})


def check_cpu_load(ctx: DiagnosticContext) -> DiagnosticCheck:
    """One-minute load average scaled by the number of CPUs."""
    load = ctx.need(ctx.load_avg, SOURCE_LOAD_AVG)
    cpus = ctx.need(ctx.cpu_count, SOURCE_CPU_INFO)

    settings = ctx.settings
    per_cpu = load.load1 / cpus
    msg = f"{load.load1:.2f} / {load.load5:.2f} / {load.load15:.2f} ({cpus} CPUs)"
    if per_cpu > settings.load_fail_per_cpu:
        return DiagnosticCheck.fail("cpu_load", "CPU Load", msg)
    if per_cpu > settings.load_warn_per_cpu:
        return DiagnosticCheck.warn("cpu_load", "CPU Load", msg)
    return DiagnosticCheck.passed("cpu_load", "CPU Load", msg)


def check_services(ctx: DiagnosticContext) -> DiagnosticCheck:
    """Rollup of Talos service health with a restart fix for the first failure."""
    services = ctx.need(ctx.services, SOURCE_SERVICES)
    if not services:
        raise EvidenceUnavailable(SOURCE_SERVICES)

    failed = [svc for svc in services if svc.healthy is False]
    degraded = [
        svc for svc in services if svc.healthy is None and svc.state not in _RUNNING_STATES
    ]
    total = len(services)

    if failed:
        first = failed[0]
        fix = DiagnosticFix(
            description=f"Restart {first.service_id}",
            suggested_action=FixAction.restart_service(first.service_id),
        )
        lines = [f"  {svc.service_id} - {svc.state} {svc.message}".rstrip() for svc in failed + degraded]
        return DiagnosticCheck.fail(
            "services",
            "Services",
            f"{len(failed)} of {total} unhealthy ({', '.join(svc.service_id for svc in failed)})",
            fix=fix,
        ).with_details("Unhealthy services:\n" + "\n".join(lines))
    if degraded:
        lines = [f"  {svc.service_id} - {svc.state}" for svc in degraded]
        return DiagnosticCheck.warn(
            "services", "Services", f"{len(degraded)} of {total} not running"
        ).with_details("Services not running:\n" + "\n".join(lines))
    return DiagnosticCheck.passed("services", "Services", f"{total} services healthy")


def check_etcd(ctx: DiagnosticContext) -> DiagnosticCheck:
    """Etcd membership and leadership, from the member list."""
    members = ctx.need(ctx.members, SOURCE_MEMBERS)
    if not members:
        raise EvidenceUnavailable(SOURCE_MEMBERS)

    quorum = compute_quorum(members, ctx.built_at, ctx.settings.member_freshness_window)
    leader = next((member for member in members if member.is_leader), None)
    msg = quorum.describe()
    if not quorum.has_quorum:
        return DiagnosticCheck.fail("etcd", "Etcd", f"Quorum lost: {msg}")
    if not quorum.leader_present:
        return DiagnosticCheck.fail("etcd", "Etcd", f"No leader: {msg}")
    if quorum.healthy_members < quorum.total_members:
        return DiagnosticCheck.warn("etcd", "Etcd", msg)
    leader_name = leader.hostname if leader else "unknown"
    return DiagnosticCheck.passed("etcd", "Etcd", f"Leader {leader_name}, {msg}")


def check_pod_health(ctx: DiagnosticContext) -> DiagnosticCheck:
    """Crash-looping and image-pull failures from the Kubernetes API.

    Kubelet log lines inside the freshness window are appended as
    corroboration only; they never change the status.
    """
    pods = ctx.need(ctx.resources_of("Pod"), SOURCE_K8S)
    parsed = PodParser.parse_all(pods)
    crashing = [pod for pod in parsed if pod.is_crashlooping]
    pulling = [pod for pod in parsed if pod.has_image_pull_error]

    corroboration = ""
    evidence = ctx.log_evidence(KUBELET_SERVICE)
    if evidence is not None:
        recent = evidence.mentions(
            ("CrashLoopBackOff", "ImagePullBackOff", "ErrImagePull"),
            ctx.built_at,
            ctx.settings.log_freshness_window,
        )
        if recent:
            corroboration = f"\nkubelet logs: {len(recent)} recent matching lines"

    if crashing or pulling:
        problems = []
        if crashing:
            problems.append(f"{len(crashing)} CrashLoopBackOff")
        if pulling:
            problems.append(f"{len(pulling)} image pull errors")
        details = "Unhealthy pods:\n" + "\n".join(pod.describe() for pod in crashing + pulling)
        return DiagnosticCheck.warn(
            "pods_crashing", "Pod Health", ", ".join(problems)
        ).with_details(details + corroboration)

    result = DiagnosticCheck.passed(
        "pods_crashing", "Pod Health", f"No issues detected ({len(parsed)} pods)"
    )
    if corroboration:
        result = result.with_details(corroboration.strip())
    return result


def check_certificates(ctx: DiagnosticContext) -> DiagnosticCheck:
    """Days until the soonest certificate expiry."""
    certificates = ctx.need(ctx.certificates, SOURCE_CERTIFICATES)
    if not certificates:
        raise EvidenceUnavailable(SOURCE_CERTIFICATES)

    settings = ctx.settings
    soonest = min(certificates, key=lambda cert: cert.not_after)
    days_left = (soonest.not_after - ctx.built_at).total_seconds() / _SECONDS_PER_DAY
    if days_left < 0:
        return DiagnosticCheck.fail("certificates", "Certificates", f"{soonest.name} expired")
    msg = f"{soonest.name} expires in {int(days_left)} days"
    if days_left < settings.cert_fail_days:
        return DiagnosticCheck.fail("certificates", "Certificates", msg)
    if days_left < settings.cert_warn_days:
        return DiagnosticCheck.warn("certificates", "Certificates", msg)
    return DiagnosticCheck.passed(
        "certificates", "Certificates", f"{len(certificates)} valid, next: {msg}"
    )


def _applies_to_control_plane(ctx: DiagnosticContext) -> bool:
    # Unknown role still runs the check so missing data surfaces as Unknown
    return ctx.is_control_plane or not ctx.node_role


CORE_CHECKS: tuple[CheckSpec, ...] = (
    CheckSpec("memory", "Memory", SourceTier.STATE_FILE, check_memory, CheckCategory.SYSTEM),
    CheckSpec("cpu_load", "CPU Load", SourceTier.API, check_cpu_load, CheckCategory.SYSTEM),
    CheckSpec("services", "Services", SourceTier.API, check_services, CheckCategory.SERVICES),
    CheckSpec(
        "etcd",
        "Etcd",
        SourceTier.API,
        check_etcd,
        CheckCategory.KUBERNETES,
        applies=_applies_to_control_plane,
    ),
    CheckSpec(
        "pods_crashing", "Pod Health", SourceTier.API, check_pod_health, CheckCategory.KUBERNETES
    ),
    CheckSpec(
        "certificates",
        "Certificates",
        SourceTier.API,
        check_certificates,
        CheckCategory.CERTIFICATES,
    ),
)

__all__ = [
    "CORE_CHECKS",
    "check_certificates",
    "check_cpu_load",
    "check_etcd",
    "check_memory",
    "check_pod_health",
    "check_services",
]
