import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

import madness.config as config


def plot_training_log(log_file=config.LOG_FILE, output_file="training_curve.png"):
    """Draws best / average / worst fitness per generation from a training log."""
    if not os.path.exists(log_file):
        print(f"File {log_file} not found!")
        return None

    df = pd.read_json(log_file)
    print(df[["best", "average", "worst"]].describe())

    sns.set_theme(style="whitegrid")

    long_df = df.melt(id_vars="generation", value_vars=["best", "average", "worst", "best_ever"],
                      var_name="Series", value_name="Fitness")

    plt.figure(figsize=(12, 6))
    sns.lineplot(data=long_df, x="generation", y="Fitness", hue="Series", palette="viridis")
    plt.fill_between(df["generation"], df["average"] - df["std_dev"], df["average"] + df["std_dev"],
                     alpha=0.15, color="gray", label="Avg +/- 1 std")
    plt.title("Fitness per Generation")
    plt.xlabel("Generation")
    plt.legend()
    plt.tight_layout()
    plt.savefig(output_file)
    plt.close()
    print(f"Saved {output_file}")
    return output_file


if __name__ == "__main__":
    plot_training_log()
