"""Chat screens rendered from the aggregate: menus, wager list/detail, stats, goals."""

from src.bj_account.domain.models import Account, Aggregate, Wager
from src.bj_bot.domain.messages import HOME, LOGIN, REGISTER, Button, Prompt
from src.bj_clearing.domain.analytics import summarize
from src.bj_common.cents import cents_to_display, signed_cents_to_display
from src.bj_common.enums import WagerStatus
from src.bj_goals.domain.evaluator import goal_progress

WAGERS_PER_PAGE = 5

STATUS_ICONS = {
    WagerStatus.PENDING: "⏳",
    WagerStatus.WON: "✅",
    WagerStatus.LOST: "❌",
    WagerStatus.VOID: "↩️",
    WagerStatus.CASHED_OUT: "💰",
}

_HOME_ROW = [Button("🏠 Main menu", HOME)]

HELP_TEXT = (
    "Available commands:\n\n"
    "/start - show the main menu\n"
    "/menu - same as /start\n"
    "/stats - your statistics\n"
    "/stop - end the AI chat\n"
    "/reset - clear the bot state for this chat\n"
    "/help - this message\n\n"
    "To link a web account, send the 6-digit code from the web app."
)


def main_menu(account: Account) -> Prompt:
    return Prompt(
        f"Main menu ({account.display_name})",
        [
            [Button("📊 Statistics", "menu:stats"), Button("📝 Add wager", "menu:add_wager")],
            [Button("📈 My wagers", "menu:wagers"), Button("🎯 My goals", "menu:goals")],
            [Button("🤖 AI analyst", "menu:chat")],
        ],
    )


def login_options(text: str | None = None) -> Prompt:
    return Prompt(
        text or "To get started, log in or register.",
        [[Button("🔑 Log in", LOGIN), Button("📝 Register", REGISTER)]],
    )


def home(aggregate: Aggregate, greeting: str | None = None) -> Prompt:
    if aggregate.account is None:
        return login_options(greeting)
    menu = main_menu(aggregate.account)
    if greeting:
        return Prompt(f"{greeting}\n\n{menu.text}", menu.keyboard)
    return menu


def wager_list(aggregate: Aggregate, page: int) -> Prompt:
    wagers = aggregate.wagers
    total_pages = max(1, -(-len(wagers) // WAGERS_PER_PAGE))
    page = min(max(page, 0), total_pages - 1)
    start = page * WAGERS_PER_PAGE
    shown = wagers[start:start + WAGERS_PER_PAGE]

    keyboard = [
        [Button(f"{STATUS_ICONS[w.status]} {w.display_label}"[:60], f"wager:view:{w.id}")]
        for w in shown
    ]
    nav = []
    if page > 0:
        nav.append(Button("⬅️ Back", f"wagers:page:{page - 1}"))
    if start + WAGERS_PER_PAGE < len(wagers):
        nav.append(Button("Next ➡️", f"wagers:page:{page + 1}"))
    if nav:
        keyboard.append(nav)
    keyboard.append(_HOME_ROW)

    if not wagers:
        return Prompt("You have no wagers yet.", keyboard)
    return Prompt(f"📈 My wagers (page {page + 1} / {total_pages})", keyboard)


def wager_detail(wager: Wager) -> Prompt:
    legs = "\n".join(f"  • {leg.home} - {leg.away}: {leg.market}" for leg in wager.legs)
    lines = [
        f"{STATUS_ICONS[wager.status]} {wager.display_label}",
        "",
        f"Sport: {wager.sport}",
        f"Kind: {wager.kind.value}",
        f"Events:\n{legs}",
        f"Stake: {cents_to_display(wager.stake_cents)}",
        f"Odds: {wager.odds}",
        f"Bookmaker: {wager.bookmaker or '-'}",
        f"Status: {wager.status.value}",
    ]
    if wager.profit_cents is not None:
        lines.append(f"Profit: {signed_cents_to_display(wager.profit_cents)}")
    lines.append(f"Date: {wager.created_at:%Y-%m-%d %H:%M}")
    return Prompt(
        "\n".join(lines),
        [
            [Button("🔄 Change status", f"wager:status:{wager.id}")],
            [Button("🗑 Delete", f"wager:delete:{wager.id}")],
            [Button("⬅️ Back to list", "menu:wagers")],
        ],
    )


def status_selector(wager: Wager) -> Prompt:
    def pick(status: WagerStatus, label: str) -> Button:
        return Button(label, f"wager:set:{wager.id}:{status.value}")

    return Prompt(
        f"New status for: {wager.display_label}",
        [
            [pick(WagerStatus.WON, "✅ Won"), pick(WagerStatus.LOST, "❌ Lost")],
            [pick(WagerStatus.VOID, "↩️ Void"), pick(WagerStatus.PENDING, "⏳ Pending")],
            [Button("💰 Cash out", f"wager:cashout:{wager.id}")],
            [Button("⬅️ Back", f"wager:view:{wager.id}")],
        ],
    )


def delete_confirmation(wager: Wager) -> Prompt:
    return Prompt(
        f"Delete {wager.display_label}? Any settled result will be reversed.",
        [
            [
                Button("🗑 Yes, delete", f"wager:delete_yes:{wager.id}"),
                Button("Keep", f"wager:view:{wager.id}"),
            ]
        ],
    )


def stats(aggregate: Aggregate) -> Prompt:
    summary = summarize(aggregate)
    if summary.settled_count == 0:
        return Prompt(
            f"📊 Bank: {cents_to_display(summary.balance_cents)}\n\n"
            "No settled wagers yet, so there is nothing to analyse.",
            [_HOME_ROW],
        )
    lines = [
        "📊 Your statistics",
        "",
        f"Bank: {cents_to_display(summary.balance_cents)}",
        f"Total profit: {signed_cents_to_display(summary.total_profit_cents)}",
        f"Turnover: {cents_to_display(summary.turnover_cents)}",
        f"ROI: {summary.roi:.2f}%",
        f"Win rate: {summary.win_rate:.2f}%",
        f"Settled: {summary.settled_count} (won {summary.won_count}, lost {summary.lost_count})",
        f"Pending: {summary.pending_count}",
    ]
    if summary.by_sport:
        lines += ["", "By sport:"]
        lines += [
            f"  {s.key}: {signed_cents_to_display(s.profit_cents)} (ROI {s.roi:.1f}%)"
            for s in summary.by_sport
        ]
    return Prompt("\n".join(lines), [_HOME_ROW])


def goals(aggregate: Aggregate) -> Prompt:
    keyboard = [
        [Button(f"🗑 {g.title}"[:60], f"goal:delete:{g.id}")] for g in aggregate.goals
    ]
    keyboard.append([Button("➕ New goal", "menu:add_goal")])
    keyboard.append(_HOME_ROW)
    if not aggregate.goals:
        return Prompt("🎯 You have no goals yet.", keyboard)

    icons = {"in_progress": "⏳", "achieved": "🏆", "failed": "💥"}
    lines = ["🎯 My goals", ""]
    for g in aggregate.goals:
        percent, label = goal_progress(g)
        lines.append(
            f"{icons[g.status.value]} {g.title}: {label} ({percent:.0f}%), "
            f"until {g.deadline:%Y-%m-%d}"
        )
    lines += ["", "Tap a goal below to delete it."]
    return Prompt("\n".join(lines), keyboard)
