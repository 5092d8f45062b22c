"""CLI interface for İşletme Bulucu."""
import json
import logging
from pathlib import Path
from typing import Optional

import typer
import yaml

app = typer.Typer(help="İşletme Bulucu - Find businesses in Turkey by location and category")

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def _load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from YAML or JSON file."""
    if config_path is None:
        return {}
    path = Path(config_path)
    with open(path, encoding="utf-8") as f:
        if path.suffix in ('.yaml', '.yml'):
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: yapılandırma bir nesne olmalı")
    return data


def _merge_settings(stored: dict, *layers: dict) -> dict:
    """Apply setting layers in order; a provider change drops an unset model."""
    merged = dict(stored)
    for layer in layers:
        provider = layer.get("provider")
        if provider and provider != merged.get("provider") and not layer.get("model"):
            merged["model"] = ""
        merged.update(layer)
    return merged


def search(
    province: str,
    district: str,
    main_category: str,
    neighborhood: str = "",
    sub_category: str = "",
    out: Optional[str] = None,
    copy: bool = False,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    config: Optional[str] = None,
    stream: bool = True,
):
    """Run a search, print the results and optionally export them."""
    from core.providers.base import LLMConfig, LLMError
    from core.providers.registry import get_provider, validate_provider_model
    from core.storage import LocalStore
    from ..config.models import AppSettings, SearchCriteria
    from ..export.table import ExportError, copy_to_clipboard
    from ..export.xlsx import BusinessExcelExporter
    from ..search.finder import BusinessFinder, SearchValidationError
    from ..state.history import SearchHistory
    from ..state.settings import SettingsStore

    store = LocalStore()
    settings_store = SettingsStore(store)

    # Stored settings < config file < command-line flags
    flags = {k: v for k, v in (("provider", provider), ("model", model)) if v}
    try:
        cfg_data = _load_config(config)
        prompt_overrides = cfg_data.pop("prompts", None) or {}
        settings = AppSettings(**_merge_settings(settings_store.load().model_dump(), cfg_data, flags))
    except (OSError, ValueError, yaml.YAMLError) as e:
        typer.echo(f"Hata: {e}", err=True)
        raise typer.Exit(code=1)
    if not validate_provider_model(settings.provider, settings.model):
        typer.echo(f"Hata: {settings.provider} için geçersiz model: {settings.model}", err=True)
        raise typer.Exit(code=1)

    criteria = SearchCriteria(
        province=province,
        district=district,
        neighborhood=neighborhood,
        main_category=main_category,
        sub_category=sub_category,
    )

    llm = get_provider(
        settings.provider,
        model=settings.model,
        api_key=settings_store.api_key(settings.provider),
    )
    finder = BusinessFinder(
        llm,
        config=LLMConfig(
            model=settings.model,
            temperature=settings.temperature,
            use_search_grounding=settings.use_search_grounding,
        ),
        max_results=settings.max_results_per_task,
        prompt_overrides=prompt_overrides,
        stream=stream,
    )

    print(f"Searching with {settings.provider}/{settings.model}")
    result = None
    try:
        for event in finder.iter_search(criteria):
            if event.kind == "task_started":
                print(f"[{event.task_index + 1}/{event.task_count}] {event.task.label()}")
            elif event.kind == "business":
                b = event.business
                print(f"  → {b.business_name} | {b.display_phone()} | {b.display_rating()}")
            elif event.kind == "task_failed":
                print(f"  ✗ {event.error}")
            elif event.kind == "finished":
                result = event.result
    except (SearchValidationError, LLMError) as e:
        typer.echo(f"Hata: {e}", err=True)
        raise typer.Exit(code=1)

    if result.aborted:
        typer.echo(f"Hata: {result.error}", err=True)
        raise typer.Exit(code=1)

    SearchHistory(store, limit=settings.history_limit).add(criteria, len(result.businesses))
    print(f"\n✓ {len(result.businesses)} businesses found")
    if result.skipped_lines:
        print(f"  - {result.skipped_lines} unreadable line(s) skipped")

    try:
        if out:
            path = BusinessExcelExporter(result.businesses).save(out)
            print(f"  - saved to {path}")
        if copy:
            rows = copy_to_clipboard(result.businesses)
            print(f"  - {rows} rows copied to clipboard")
    except ExportError as e:
        typer.echo(f"Hata: {e}", err=True)
        raise typer.Exit(code=1)

    return result


@app.command("search")
def cli_search(
    province: str = typer.Option(..., "--province", "-p", help="Province value (e.g. istanbul)"),
    district: str = typer.Option(..., "--district", "-d", help="District value (e.g. kadikoy)"),
    main_category: str = typer.Option(..., "--category", "-c", help="Main category value"),
    neighborhood: str = typer.Option("", "--neighborhood", "-n", help="Neighborhood value; empty searches all"),
    sub_category: str = typer.Option("", "--sub-category", "-s", help="Sub category value; empty searches all"),
    out: Optional[str] = typer.Option(None, "--out", help="Write results to this XLSX file"),
    copy: bool = typer.Option(False, "--copy", help="Copy results to the clipboard"),
    provider: Optional[str] = typer.Option(None, help="LLM provider (google/anthropic/openai)"),
    model: Optional[str] = typer.Option(None, help="Model id"),
    config: Optional[str] = typer.Option(None, help="Path to config YAML/JSON"),
    stream: bool = typer.Option(True, "--stream/--no-stream", help="Stream results line by line"),
):
    """Find businesses for a location and category."""
    search(province, district, main_category, neighborhood, sub_category,
           out, copy, provider, model, config, stream)


@app.command("locations")
def cli_locations(
    province: Optional[str] = typer.Argument(None, help="Province value; lists its districts"),
    district: Optional[str] = typer.Argument(None, help="District value; lists its neighborhoods"),
    categories: bool = typer.Option(False, "--categories", help="List categories instead"),
):
    """List selectable provinces, districts, neighborhoods or categories."""
    from ..config.locations import get_catalog

    catalog = get_catalog()
    if categories:
        for cat in catalog.main_categories:
            print(f"{cat.value}\t{cat.label}")
            for sub in catalog.get_sub_category_options(cat.value):
                print(f"  {sub.value}\t{sub.label}")
        return

    if province and district:
        options = catalog.get_neighborhood_options(province, district)
    elif province:
        options = catalog.get_district_options(province)
    else:
        options = catalog.provinces
    if not options:
        typer.echo("Kayıt bulunamadı.", err=True)
        raise typer.Exit(code=1)
    for opt in options:
        print(f"{opt.value}\t{opt.label}")


@app.command("history")
def cli_history(
    clear: bool = typer.Option(False, "--clear", help="Delete the search history"),
):
    """Show or clear past searches."""
    from core.storage import LocalStore
    from ..state.history import SearchHistory

    history = SearchHistory(LocalStore())
    if clear:
        history.clear()
        print("Geçmiş temizlendi.")
        return
    items = history.items()
    if not items:
        print("Geçmiş arama yok.")
        return
    for item in items:
        print(
            f"{item.formatted_timestamp()}  {item.sub_category_label} - "
            f"{item.location_text()} ({item.result_count} sonuç)"
        )


@app.command("theme")
def cli_theme(
    next_: bool = typer.Option(False, "--next", help="Switch to the next theme"),
):
    """Show the theme preference, or cycle light → dark → system."""
    from core.storage import LocalStore
    from ..state.settings import SettingsStore, theme_label

    settings_store = SettingsStore(LocalStore())
    theme = settings_store.next_theme() if next_ else settings_store.theme
    print(f"{theme} ({theme_label(theme)})")


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
