"""Telegram Markdown rendering for alerts, reports and settings."""

from datetime import datetime, timedelta

from domainwatch.engine.models import (
    AlertPreferences,
    DomainEvent,
    DomainState,
    EventType,
    PeriodicReport,
    ReportInterval,
    SubscriptionSnapshot,
    SubscriptionStats,
)

EVENT_EMOJIS: dict[EventType, str] = {
    EventType.ACTIVITY: "⚡",
    EventType.LISTING: "💰",
    EventType.OFFER: "🎯",
}

STATUS_EMOJIS: dict[DomainState, str] = {
    DomainState.ACTIVE: "✅",
    DomainState.INACTIVE: "❌",
    DomainState.ERROR: "⚠️",
}


def score_emoji(score: int) -> str:
    if score >= 90:
        return "🟢"
    if score >= 70:
        return "🟡"
    if score >= 50:
        return "🟠"
    return "🔴"


def status_emoji(status: DomainState) -> str:
    return STATUS_EMOJIS.get(status, "❓")


def _check(flag: bool) -> str:
    return "✅" if flag else "❌"


def format_event_alert(domain: str, events: list[DomainEvent]) -> str:
    """Render newly detected events for one domain."""
    lines = [f"🚨 *Domain Alert:* `{domain}`", ""]
    for event in events:
        lines.append(f"{EVENT_EMOJIS.get(event.type, '🔔')} *{event.type.value}*")
        lines.append(event.message)
        lines.append("")
    return "\n".join(lines).rstrip()


def format_status_report(report: PeriodicReport) -> str:
    """Render a periodic status report."""
    lines = [
        "📊 *Periodic Domain Status Report*",
        f"🕐 *Generated:* {report.timestamp.strftime('%Y-%m-%d %H:%M UTC')}",
        "",
    ]

    if not report.domains:
        lines.append("No domains being tracked. Subscribe to domains to receive reports.")
        return "\n".join(lines)

    lines.append(f"📈 *Tracked Domains:* {len(report.domains)}")
    for status in report.domains:
        lines.append("")
        lines.append(f"🌐 *{status.domain}*")
        lines.append(f"• *Score:* {score_emoji(status.score)} {status.score}/100")
        lines.append(f"• *Status:* {status_emoji(status.status)} {status.status.value}")
        if status.error:
            lines.append(f"• *Error:* {status.error}")
            continue
        lines.append(f"• *Activities:* {status.activities}")
        lines.append(f"• *Listings:* {status.listings}")
        lines.append(f"• *Offers:* {status.offers}")
        lines.append(f"• *Last Activity:* {status.last_activity}")
        lines.append(f"• *Current Price:* {status.current_price}")
        if status.below_threshold:
            lines.append("• ⚠️ Score below your threshold")

    lines.append("")
    lines.append("💡 *Tip:* Use /set\\_interval to configure report frequency")
    return "\n".join(lines)


def format_report_settings(
    interval: ReportInterval, enabled: bool, now: datetime | None = None
) -> str:
    """Confirmation after changing cadence or toggling reports."""
    now = now or datetime.now()
    next_report = (
        (now + timedelta(seconds=interval.seconds)).strftime("%Y-%m-%d %H:%M") if enabled else "N/A"
    )
    state = "enabled" if enabled else "disabled"
    return "\n".join(
        [
            "⚙️ *Report Settings Updated*",
            "",
            f"• *Status:* {'✅ Enabled' if enabled else '❌ Disabled'}",
            f"• *Interval:* {interval.value}",
            f"• *Next Report:* {next_report}",
            "",
            f"Your periodic reports have been {state}.",
        ]
    )


def format_preferences(preferences: AlertPreferences) -> list[str]:
    return [
        "🔔 *Alert Settings:*",
        f"• Price Alerts: {_check(preferences.price_alerts)}",
        f"• Expiration Alerts: {_check(preferences.expiration_alerts)}",
        f"• Sale Alerts: {_check(preferences.sale_alerts)}",
        f"• Transfer Alerts: {_check(preferences.transfer_alerts)}",
        f"• Score Threshold: {preferences.score_threshold}/100",
        f"• Reports: {_check(preferences.periodic_reports)} ({preferences.report_interval.value})",
    ]


def format_subscriptions(snapshot: SubscriptionSnapshot) -> str:
    """Render a user's subscription list."""
    if not snapshot.domains:
        return (
            "📋 *Your Subscriptions*\n\n"
            "_No active subscriptions. Use /subscribe <domain> to start tracking domains._"
        )

    lines = [f"📋 *Your Subscriptions* ({len(snapshot.domains)})", ""]
    lines.extend(f"{index}. `{domain}`" for index, domain in enumerate(snapshot.domains, 1))
    lines.append("")
    lines.extend(format_preferences(snapshot.preferences))
    return "\n".join(lines)


def format_stats(stats: SubscriptionStats) -> str:
    """Render engine statistics for the admin."""
    return "\n".join(
        [
            "📊 *Bot Statistics*",
            "",
            f"• Total Users: {stats.total_users}",
            f"• Total Domains: {stats.total_domains}",
            f"• Monitoring: {'✅ Active' if stats.is_monitoring else '❌ Inactive'}",
            f"• Active Report Timers: {stats.active_report_timers}",
        ]
    )


def format_error(error: str) -> str:
    return f"❌ *Error*\n\n{error}\n\nPlease try again."
