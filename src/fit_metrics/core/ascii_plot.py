"""
ASCII plotting for dashboard series.

Creates terminal-friendly charts from ChartDataPoint series and 1RM
progressions.
"""

from datetime import datetime

from .models import ChartDataPoint, OneRepMaxPoint
from .periods import TimePeriod


def format_bucket_label(date: datetime, period: TimePeriod) -> str:
    """Axis label for a bucket start; *period* is the bucket size."""
    if period == TimePeriod.DAY:
        return date.strftime("%a %b %d")
    if period == TimePeriod.WEEK:
        return date.strftime("wk %b %d")
    if period == TimePeriod.YEAR:
        return date.strftime("%Y")
    return date.strftime("%b %Y")


def create_line_plot(
    points: list[ChartDataPoint],
    title: str,
    width: int = 60,
    height: int = 16,
    unit_label: str = "",
) -> str:
    """
    Create an ASCII line plot of a series over time.

    Points are placed proportionally to their dates and joined with
    staircase segments (╭─╯).

    Args:
        points: Series sorted by date
        title: Chart title
        width: Plot width in characters
        height: Plot height in lines
        unit_label: Suffix for the value labels, e.g. "kg"

    Returns:
        ASCII art string
    """
    if not points:
        return "No data to display."

    min_date = points[0].date
    max_date = points[-1].date
    date_span = (max_date - min_date).days or 1

    min_val = min(p.value for p in points)
    max_val = max(p.value for p in points)
    margin = (max_val - min_val) * 0.1 or 1.0
    y_min = max(0.0, min_val - margin)
    y_max = max_val + margin
    y_range = y_max - y_min

    plot_width = width - 9  # Room for y-axis labels
    plot_height = height - 3  # Room for title and x-axis

    grid = [[" " for _ in range(plot_width)] for _ in range(plot_height)]

    plot_points: list[tuple[int, int]] = []
    for p in points:
        days_from_start = (p.date - min_date).days
        x = int((days_from_start / date_span) * (plot_width - 1)) if len(points) > 1 else 0
        y = int(((p.value - y_min) / y_range) * (plot_height - 1))
        plot_points.append((x, plot_height - 1 - y))

    def _put(x: int, r: int, ch: str) -> None:
        if 0 <= x < plot_width and 0 <= r < plot_height and grid[r][x] == " ":
            grid[r][x] = ch

    for (col1, row1), (col2, row2) in zip(plot_points, plot_points[1:]):
        n_rows = abs(row2 - row1)
        if n_rows == 0:
            for x in range(col1 + 1, col2):
                _put(x, row1, "─")
            continue

        if col1 == col2:
            for r in range(min(row1, row2) + 1, max(row1, row2)):
                _put(col1, r, "│")
            continue

        row_dir = -1 if row2 < row1 else 1
        up = row_dir == -1
        corner_exit = "╯" if up else "╮"
        corner_entry = "╭" if up else "╰"
        n_segs = n_rows + 1

        for step in range(n_segs):
            row = row1 + row_dir * step
            pivot_in = col1 + (col2 - col1) * step // n_segs
            pivot_out = col1 + (col2 - col1) * (step + 1) // n_segs

            if step > 0:
                _put(pivot_in, row, corner_entry)
            start = col1 + 1 if step == 0 else pivot_in + 1
            stop = col2 if step == n_segs - 1 else pivot_out
            for x in range(start, stop):
                _put(x, row, "─")
            if step < n_segs - 1:
                _put(pivot_out, row, corner_exit)

    for x, y in plot_points:
        if 0 <= x < plot_width and 0 <= y < plot_height:
            grid[y][x] = "●"

    lines = [title, "─" * width]

    for i, row in enumerate(grid):
        y_val = y_max - (i / (plot_height - 1)) * y_range if plot_height > 1 else y_max
        lines.append(f"{y_val:7.1f} ┤" + "".join(row))

    lines.append("─" * width)

    label_line = [" "] * plot_width
    mid_date = min_date + (max_date - min_date) / 2
    for x_pos, date in ((0, min_date), (plot_width // 2, mid_date), (plot_width - 7, max_date)):
        for j, c in enumerate(date.strftime("%b %d")):
            if 0 <= x_pos + j < plot_width:
                label_line[x_pos + j] = c
    lines.append(" " * 9 + "".join(label_line))

    if unit_label:
        lines.append(f"● value ({unit_label})")

    return "\n".join(lines)


def create_progression_plot(
    progression: list[OneRepMaxPoint],
    exercise_name: str,
    width: int = 60,
    height: int = 16,
) -> str:
    """
    Plot an estimated 1RM progression.

    Args:
        progression: Output of one_rep_max.compute_progression
        exercise_name: Shown in the title

    Returns:
        ASCII art string
    """
    if not progression:
        return f"No weighted sets recorded for {exercise_name}."

    unit = progression[0].estimated_max.unit
    series = [ChartDataPoint(date=p.date, value=p.estimated_max.magnitude) for p in progression]
    return create_line_plot(
        series,
        title=f"Estimated 1RM Progress ({exercise_name})",
        width=width,
        height=height,
        unit_label=unit,
    )


def create_simple_bar_chart(
    labels: list[str],
    values: list[float],
    width: int = 40,
    title: str = "",
) -> str:
    """
    Create a simple horizontal bar chart.

    Args:
        labels: Labels for each bar
        values: Values for each bar
        width: Maximum bar width
        title: Chart title

    Returns:
        ASCII bar chart string
    """
    if not values:
        return "No data to display."

    max_val = max(values)
    max_label_len = max(len(l) for l in labels) if labels else 0

    lines = []

    if title:
        lines.append(title)
        lines.append("─" * (max_label_len + width + 5))

    for label, value in zip(labels, values):
        bar_len = int((value / max_val) * width) if max_val > 0 else 0
        bar = "█" * bar_len
        lines.append(f"{label:>{max_label_len}} │{bar} {value:.1f}")

    return "\n".join(lines)


def create_series_bar_chart(
    points: list[ChartDataPoint],
    period: TimePeriod,
    title: str = "",
    width: int = 40,
) -> str:
    """
    Horizontal bar chart of a bucketed series, one bar per bucket.

    Args:
        points: Series from one of the metrics.aggregate_* functions
        period: Period the series was built for (selects label format)
        title: Chart title
        width: Maximum bar width

    Returns:
        ASCII bar chart string
    """
    labels = [format_bucket_label(p.date, period) for p in points]
    return create_simple_bar_chart(labels, [p.value for p in points], width=width, title=title)
