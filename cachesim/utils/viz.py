import plotly.express as px
import pandas as pd

def export_access_map(timeline, path: str):
    if not timeline:
        with open(path, "w") as f:
            f.write("<h1>Cache Access Map</h1><p>No data to display.</p>")
        return

    df = pd.DataFrame(timeline)
    # Ensure numeric types for the axes, coercing errors
    df['seq']   = pd.to_numeric(df['seq'], errors='coerce')
    df['index'] = pd.to_numeric(df['index'], errors='coerce')
    df = df.dropna(subset=['seq', 'index'])
    df['result'] = df['hit'].map({True: "Hit", False: "Miss"})

    # Define hover data, checking for column existence
    hover_data_cols = ['kind', 'address', 'tag', 'offset', 'evicted_tag']
    existing_hover_cols = [c for c in hover_data_cols if c in df.columns]

    fig = px.scatter(
        df,
        x="seq",
        y="index",
        color="result",
        symbol="kind" if "kind" in df.columns else None,
        hover_data=existing_hover_cols,
        title="Cache Simulation Access Map",
        labels={"seq": "Reference Number", "index": "Set Index", "result": "Result"},
        color_discrete_map={"Hit": "seagreen", "Miss": "firebrick"},
    )

    fig.update_yaxes(autorange="reversed", title="Set Index")
    fig.update_xaxes(title="Reference Number")
    fig.update_layout(
        height=max(500, int(df['index'].nunique()) * 25),
        font=dict(family="Courier New, monospace", size=12),
        legend_title="Result"
    )

    fig.write_html(path, include_plotlyjs="cdn", full_html=True)

def export_set_usage_ascii(per_set, width: int = 60):
    if not per_set:
        return "No sets to display."

    max_total = max((c['hits'] + c['misses'] for c in per_set.values()), default=0)
    if max_total == 0:
        return "No accesses recorded."

    scale = width / max_total

    chart = "Per-Set Usage (H = hit, M = miss)\n"
    chart += "" + ("-" * (width + 20)) + "\n"

    for index in sorted(per_set):
        counts = per_set[index]
        hit_len = int(round(counts['hits'] * scale))
        miss_len = int(round((counts['hits'] + counts['misses']) * scale)) - hit_len
        bar = ("H" * hit_len + "M" * miss_len).ljust(width)
        chart += f"{index:>8} |{bar}| {counts['hits']}/{counts['misses']}\n"

    chart += "" + ("-" * (width + 20)) + "\n"
    return chart
