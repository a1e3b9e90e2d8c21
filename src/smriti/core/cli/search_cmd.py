"""smriti search / smriti similar: query the journal from a terminal."""

from __future__ import annotations

import click


@click.command()
@click.argument("query")
@click.option("--from", "date_from", metavar="YYYY-MM-DD", help="Entries on or after this date.")
@click.option("--to", "date_to", metavar="YYYY-MM-DD", help="Entries on or before this date.")
@click.option("--city", help="Only entries written in this city.")
@click.option("--starred/--not-starred", default=None, help="Only starred (or only unstarred) entries.")
@click.option("--tag", "tags", multiple=True, help="Only entries with any of these tags. Repeatable.")
@click.option("--limit", type=int, default=None, help="Maximum number of results.")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), help="Path to a YAML/JSON config file.")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")
def search(query, date_from, date_to, city, starred, tags, limit, as_json, config_file, log_level) -> None:
    """Hybrid semantic + keyword search for QUERY."""
    from smriti.core.cli.common import configure_logging, load_config, run_with_searcher
    from smriti.journal.formatting import format_search_results, outcome_to_json

    config = load_config(config_file)
    configure_logging(config, log_level)

    filters = {
        "date_from": date_from,
        "date_to": date_to,
        "city": city,
        "starred": starred,
        "tags": list(tags) or None,
    }
    filters = {k: v for k, v in filters.items() if v is not None}

    async def action(searcher) -> str:
        outcome = await searcher.search(query, filters, limit=limit)
        return outcome_to_json(outcome) if as_json else format_search_results(outcome)

    run_with_searcher(config, action)


@click.command()
@click.argument("uuid")
@click.option("--limit", type=int, default=None, help="Maximum number of results.")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), help="Path to a YAML/JSON config file.")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")
def similar(uuid, limit, as_json, config_file, log_level) -> None:
    """Entries most similar in meaning to the entry UUID."""
    from smriti.core.cli.common import configure_logging, load_config, run_with_searcher
    from smriti.journal.formatting import format_similar_results, outcome_to_json

    config = load_config(config_file)
    configure_logging(config, log_level)

    async def action(searcher) -> str:
        outcome = await searcher.find_similar(uuid, limit=limit)
        return outcome_to_json(outcome) if as_json else format_similar_results(outcome)

    run_with_searcher(config, action)
