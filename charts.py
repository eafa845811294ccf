import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.ticker import MaxNLocator

PASS_COLOR = "#2ecc71"
FAIL_COLOR = "#e74c3c"


def generate_pass_fail_bar(summary, output_path):
    fig, ax = plt.subplots()
    ax.bar(
        ["Pass", "Fail"],
        [summary["pass_count"], summary["fail_count"]],
        color=[PASS_COLOR, FAIL_COLOR],
        width=0.5,
    )
    ax.yaxis.set_major_locator(MaxNLocator(integer=True))
    ax.set_xlabel("Result")
    ax.set_ylabel("Number of Drivers")
    ax.set_title("Pass/Fail Distribution")
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)
    fig.tight_layout()
    fig.savefig(output_path)
    plt.close(fig)


def generate_rule_failures_bar(summary, output_path):
    # Reversed so the first rule is drawn at the top
    labels = [m.rstrip(";") for m in summary["rule_failures"]][::-1]
    counts = list(summary["rule_failures"].values())[::-1]

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.barh(labels, counts, color=FAIL_COLOR)
    ax.xaxis.set_major_locator(MaxNLocator(integer=True))
    ax.set_xlabel("Number of Drivers")
    ax.set_title("Failures by Rule")
    fig.tight_layout()
    fig.savefig(output_path)
    plt.close(fig)
