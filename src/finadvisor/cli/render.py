"""Rich rendering of transcript entries, charts and notifications."""

from rich.console import Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..assistant import PendingNotification, RenderableChart
from ..memory import Message


def render_chart(chart: RenderableChart) -> Table:
    table = Table(title=chart.title, show_header=True, header_style="bold cyan")
    table.add_column("Label", style="cyan")
    for series in chart.series:
        table.add_column(series.name or "Value", justify="right", style="green")
    for index, label in enumerate(chart.labels):
        table.add_row(label, *(f"{series.data[index]:,.2f}" for series in chart.series))
    return table


def render_message(message: Message) -> Panel:
    timestamp = message.created_at.astimezone().strftime("%H:%M")
    if message.sender == "user":
        return Panel(Text(message.text), title="You", title_align="right", subtitle=timestamp, border_style="blue")

    parts: list[RenderableType] = [Markdown(message.text)]
    if message.chart_data:
        parts.append(render_chart(RenderableChart.model_validate(message.chart_data)))
    if message.function_called:
        parts.append(Text(f"Action: {message.function_called}", style="dim green"))
    return Panel(Group(*parts), title="AI Assistant", title_align="left", subtitle=timestamp, border_style="white")


def render_notification(notification: PendingNotification) -> Panel:
    noun = "expense" if notification.count == 1 else "expenses"
    lines = [
        f"• {item.description}: {item.amount:,.2f} {item.currency or notification.currency} ({item.date.isoformat()})"
        for item in notification.items
    ]
    if notification.hidden_count:
        lines.append(f"… and {notification.hidden_count} more")
    body = "\n".join(lines + ["", f"Total: {notification.total:,.2f} {notification.currency}"])
    return Panel(body, title=f"Added {notification.count} {noun}", border_style="green")
