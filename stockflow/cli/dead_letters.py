# stockflow/cli/dead_letters.py
import json

import click

from stockflow.services.notification_queue import list_dead_letters


@click.command()
@click.option("--limit", default=100, show_default=True, help="Maximum number of jobs to show")
@click.option("--as-json", is_flag=True, help="Print raw JSON records")
def dead_letters(limit, as_json):
    """List webhook jobs that used up every delivery attempt"""
    records = list_dead_letters(limit)
    if not records:
        click.echo("No dead-lettered jobs")
        return

    for record in records:
        if as_json:
            click.echo(json.dumps(record))
        else:
            click.echo(
                f"{record.get('failedAt', '?')}  {record.get('endpoint')}  "
                f"sku={record.get('sku')} newStock={record.get('newStock')}  "
                f"attempts={record.get('attempts')}  error={record.get('error')}"
            )


if __name__ == "__main__":
    dead_letters()
