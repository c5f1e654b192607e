#!filepath: jobmatch/cli.py
import json
from typing import List, Optional

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from jobmatch import AppConfig, Logging
from jobmatch.workflows.bootstrap import build_services as _build_services

app = typer.Typer(help="JobMatch model lifecycle CLI")
console = Console()


def build_services():
    cfg = AppConfig.load()
    Logging.from_config(cfg.log)
    return _build_services(cfg)


def _print_json(data) -> None:
    console.print_json(json.dumps(data, default=str))


@app.command()
def version():
    print("v0.1.0")


@app.command("train-all")
def train_all():
    """
    训练所有模型类型（与定时任务共用同一把锁）
    """
    summary = build_services().models.train_all()
    color = "green" if summary["success"] else "red"
    print(f"[{color}]{summary['message']}[/{color}]")
    for r in summary["results"]:
        print(f"  {r['modelType'] or '-'}: {r['message']}")


@app.command()
def train(model_type: str):
    """
    Train one model type (JobRecommendation / StudentRecommendation / JobPayPrediction)
    """
    result = build_services().models.train_one(model_type)
    color = "green" if result.success else "red"
    print(f"[{color}]{result.message}[/{color}]")
    _print_json(result.to_dict())


@app.command()
def versions(model_type: str):
    rows = build_services().models.get_versions(model_type)

    table = Table(title=f"{model_type} runs")
    for col in ("run", "version", "stage", "created", "PR-AUC / MAE", "comparison"):
        table.add_column(col)
    for v in rows:
        key = v.metrics.mae if v.metrics.mae else v.metrics.pr_auc
        table.add_row(
            v.run_id[:12],
            v.version or "-",
            v.stage.value,
            v.created_at.isoformat(timespec="seconds") if v.created_at else "-",
            f"{key:.4f}",
            (v.comparison_result or "")[:60],
        )
    console.print(table)


@app.command()
def production(model_type: str):
    info = build_services().models.get_production(model_type)
    if info is None:
        print(f"[yellow]No production model for {model_type}[/yellow]")
        raise typer.Exit(code=1)
    _print_json(info.to_dict())


@app.command()
def promote(model_type: str, model_version: str):
    info = build_services().models.promote(model_type, model_version)
    print(f"[green]{model_type} v{info.version} → Production[/green]")


@app.command()
def rollback(model_type: str):
    if not build_services().models.rollback(model_type):
        print("[red]Nothing to roll back to[/red]")
        raise typer.Exit(code=1)
    print(f"[green]{model_type} rolled back[/green]")


@app.command()
def status():
    _print_json(build_services().models.status().to_dict())


@app.command("invalidate-cache")
def invalidate_cache(model_type: Optional[str] = typer.Argument(None)):
    build_services().models.invalidate_cache(model_type)
    print(f"[green]cache invalidated: {model_type or 'all'}[/green]")


@app.command()
def types():
    for t in build_services().models.list_types():
        print(t)


@app.command("recommend-jobs")
def recommend_jobs(student_id: str, mode: str = "learned", top: int = 10):
    recs = build_services().jobs.recommend(student_id, mode=mode)
    if not recs:
        print("[yellow]No recommendations[/yellow]")
        return

    table = Table(title=f"Jobs for {student_id}")
    table.add_column("score", justify="right")
    table.add_column("job")
    table.add_column("title")
    table.add_column("why")
    for r in recs[:top]:
        why = r.explanations[0].description if r.explanations else ""
        table.add_row(f"{r.score:.3f}", r.job.job_id, r.job.title, why)
    console.print(table)


@app.command("recommend-students")
def recommend_students(job_id: str, mode: str = "learned", top: int = 10):
    recs = build_services().students.recommend(job_id, mode=mode)
    if not recs:
        print("[yellow]No recommendations[/yellow]")
        return

    table = Table(title=f"Applicants for {job_id}")
    table.add_column("score", justify="right")
    table.add_column("student")
    table.add_column("status")
    table.add_column("why")
    for r in recs[:top]:
        why = r.explanations[0].description if r.explanations else ""
        table.add_row(f"{r.score:.3f}", r.student.student_id, r.application.status, why)
    console.print(table)


@app.command("predict-pay")
def predict_pay(
    algorithm: str,
    job_type: str = typer.Option("", "--type"),
    place_of_work: str = typer.Option("", "--place"),
    trait: List[str] = typer.Option([], "--trait", help="repeatable"),
):
    pred = build_services().pay.predict(
        algorithm,
        {"type": job_type, "place_of_work": place_of_work, "required_traits": trait},
    )
    print(f"[green]{pred.hourly_pay:.2f}[/green] ({pred.algorithm}, {pred.source})")


@app.command("evaluate-pay")
def evaluate_pay(algorithm: Optional[str] = typer.Argument(None)):
    """
    Held-out metrics for one pay algorithm, or all of them
    """
    pay = build_services().pay
    results = {algorithm: pay.evaluate(algorithm).metrics} if algorithm else pay.evaluate_all()

    table = Table(title="Pay prediction")
    for col in ("algorithm", "MAE", "RMSE", "R²"):
        table.add_column(col)
    for name, m in results.items():
        table.add_row(name, f"{m.mae:.4f}", f"{m.rmse:.4f}", f"{m.r_squared:.4f}")
    console.print(table)


@app.command("serve-scheduler")
def serve_scheduler():
    """
    阻塞运行每日训练调度（Ctrl+C 退出）
    """
    services = build_services()
    print(f"[blue]Scheduler: daily at {services.cfg.training.scheduled_time}[/blue]")
    try:
        services.scheduler.run_forever()
    except KeyboardInterrupt:
        print("[yellow]stopping[/yellow]")
    finally:
        services.orchestrator.shutdown()


if __name__ == "__main__":
    app()

# python -m jobmatch.cli train-all
