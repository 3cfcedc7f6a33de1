
import os, sqlite3, numpy as np, pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from core.state_store import Experiment
from core.dce_model import uptake_grid
from core.metrics import wtp_frame, compute_cost_benefit
from core.coefficients import QALY_SCENARIOS

os.makedirs("db", exist_ok=True)
os.makedirs("outputs", exist_ok=True)

COSTS = np.arange(0, 1001, 25)

def simulate():
    return pd.concat([uptake_grid(e, COSTS) for e in Experiment], ignore_index=True)

def cost_benefit_table(grid):
    # reference efficacy/risk at each cost, every QALY scenario
    ref = grid[(grid.efficacy=="0") & (grid.risk=="0")]
    rows=[]
    for _,r in ref.iterrows():
        for q in QALY_SCENARIOS:
            cb = compute_cost_benefit(r["uptake"], q)
            rows.append({"experiment":r["experiment"], "cost":r["cost"], "qaly":q,
                         "participants":cb.participant_count, "total_cost":round(cb.total_cost,2),
                         "net_benefit":round(cb.net_benefit,2)})
    return pd.DataFrame(rows)

def write_db(grid, wtp, cb, path="db/decision_aid_report.db"):
    con = sqlite3.connect(path)
    grid.to_sql("uptake_grid", con, if_exists="replace", index=False)
    wtp.to_sql("wtp", con, if_exists="replace", index=False)
    cb.to_sql("cost_benefit", con, if_exists="replace", index=False)
    con.close()

def plots(grid, wtp):
    fig,axes = plt.subplots(1,3,figsize=(14,4),sharey=True)
    for ax,e in zip(axes, Experiment):
        g = grid[(grid.experiment==e.value) & (grid.risk=="0")]
        for eff,sub in g.groupby("efficacy"):
            ax.plot(sub["cost"], sub["uptake"], label=f"Efficacy {eff}%")
        ax.set_title(e.label); ax.set_xlabel("Monthly cost ($)")
    axes[0].set_ylabel("Uptake (%)"); axes[0].legend()
    fig.tight_layout(); fig.savefig("outputs/uptake_by_cost.png"); plt.close(fig)

    for e,sub in wtp.groupby("experiment"):
        fig,ax = plt.subplots(figsize=(8,3.5))
        colors=["tab:blue" if v>=0 else "tab:red" for v in sub["wtp"]]
        ax.bar(sub["attribute"], sub["wtp"], yerr=sub["standard_error"], color=colors, capsize=3)
        ax.set_title(f"Willingness to Pay (USD) - Experiment {e}")
        ax.tick_params(axis="x", rotation=45)
        fig.tight_layout(); fig.savefig(f"outputs/wtp_experiment_{e}.png"); plt.close(fig)

if __name__=="__main__":
    grid = simulate()
    wtp = pd.concat([wtp_frame(e).assign(experiment=e.value) for e in Experiment], ignore_index=True)
    cb = cost_benefit_table(grid)
    write_db(grid, wtp, cb)
    plots(grid, wtp)

    print("DONE. DB at db/decision_aid_report.db; charts in outputs/.")
