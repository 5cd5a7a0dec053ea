import click
import os
import sys
from typing import Optional

from generators.epub import (
    EPUBGenerator,
    EpubExportError,
    ImageFetcher,
    inline_images_in_html,
)

from . import __version__
from .article_store import ArticleStore, DEFAULT_QUEUE_ID
from .utils import create_progress_callback, format_file_size, load_config, setup_logging


def _prepare(config_path: Optional[str], verbose: bool) -> dict:
    """Load configuration and install logging for a command run."""
    app_config = load_config(config_path or 'config.yaml')
    if verbose:
        app_config['logging']['level'] = 'DEBUG'

    logging_config = dict(app_config['logging'])
    logging_config.setdefault('logs_dir', app_config.get('directories', {}).get('logs_dir', 'logs'))
    setup_logging(logging_config)
    return app_config


@click.command()
@click.argument('store_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--queue', '-q', 'queue_id',
              default=DEFAULT_QUEUE_ID,
              show_default=True,
              help='Queue to export')
@click.option('--title', '-t',
              help='Book title (defaults to config epub.title)')
@click.option('--creator',
              help='Book author metadata (defaults to config epub.creator)')
@click.option('--date', 'export_date',
              help='Export date as YYYY-MM-DD (defaults to today)')
@click.option('--output', '-o',
              type=click.Path(dir_okay=False),
              help='Output EPUB filename')
@click.option('--no-images',
              is_flag=True,
              help='Keep remote image links instead of embedding images')
@click.option('--seed',
              type=int,
              help='Seed for the cover palette')
@click.option('--clear',
              is_flag=True,
              help='Remove the exported articles from the queue afterwards')
@click.option('--config', '-c',
              type=click.Path(exists=True),
              help='Configuration file path')
@click.option('--verbose', '-v',
              is_flag=True,
              help='Enable verbose logging')
def export(store_path: str,
           queue_id: str,
           title: Optional[str],
           creator: Optional[str],
           export_date: Optional[str],
           output: Optional[str],
           no_images: bool,
           seed: Optional[int],
           clear: bool,
           config: Optional[str],
           verbose: bool):
    """
    Export a queue of saved articles as an EPUB book.

    STORE_PATH: JSON file holding the saved articles
    """
    try:
        app_config = _prepare(config, verbose)

        store = ArticleStore(store_path)
        items = store.list_items(queue_id)
        if not items:
            click.echo(f"❌ Queue '{queue_id}' is empty, nothing to export")
            sys.exit(1)

        click.echo(f"📚 Exporting {len(items)} articles from queue '{queue_id}'...")

        options = {
            'title': title,
            'creator': creator,
            'exported_at': export_date,
            'progress': create_progress_callback("Building chapters"),
        }
        if no_images:
            options['embed_images'] = False
        if seed is not None:
            options['seed'] = seed

        generator = EPUBGenerator(app_config)
        output_path = generator.generate(items, output_path=output, **options)

        size = os.path.getsize(output_path)
        click.echo(f"🎉 EPUB generated: {output_path} ({format_file_size(size)})")

        if clear:
            removed = store.delete_items_by_queue(queue_id)
            click.echo(f"🧹 Removed {removed} articles from queue '{queue_id}'")

    except EpubExportError as e:
        click.echo(f"❌ Export failed: {e}")
        sys.exit(1)
    except (OSError, ValueError) as e:
        click.echo(f"❌ Error: {e}")
        sys.exit(1)


@click.command()
@click.argument('html_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('base_url', type=str)
@click.option('--output', '-o',
              type=click.Path(dir_okay=False),
              help='Write the result here instead of standard output')
@click.option('--config', '-c',
              type=click.Path(exists=True),
              help='Configuration file path')
@click.option('--verbose', '-v',
              is_flag=True,
              help='Enable verbose logging')
def inline(html_path: str, base_url: str, output: Optional[str], config: Optional[str], verbose: bool):
    """
    Replace the images of an HTML document with data: URLs.

    HTML_PATH: HTML file to rewrite
    BASE_URL: URL the document was saved from, used to resolve relative images
    """
    try:
        app_config = _prepare(config, verbose)

        with open(html_path, 'r', encoding='utf-8') as f:
            html = f.read()

        fetcher = ImageFetcher(app_config)
        try:
            result = inline_images_in_html(html, base_url, fetcher)
        finally:
            fetcher.close()

        if output:
            with open(output, 'w', encoding='utf-8') as f:
                f.write(result)
            click.echo(f"🖼️ Inlined images written to {output}")
        else:
            click.echo(result)

    except OSError as e:
        click.echo(f"❌ Error: {e}")
        sys.exit(1)


@click.command(name='list')
@click.argument('store_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--queue', '-q', 'queue_id',
              default='',
              help='Only show this queue (default: all queues)')
def list_items(store_path: str, queue_id: str):
    """
    Show saved articles in reading order.

    STORE_PATH: JSON file holding the saved articles
    """
    try:
        store = ArticleStore(store_path)
    except (OSError, ValueError) as e:
        click.echo(f"❌ Error: {e}")
        sys.exit(1)

    items = store.list_items(queue_id)
    if not items:
        click.echo("📭 No saved articles")
        return

    label = f"queue '{queue_id}'" if queue_id else "all queues"
    click.echo(f"📚 {len(items)} articles in {label}:")
    for i, item in enumerate(items, 1):
        title = item.get('title') or item.get('url') or '(untitled)'
        details = []
        if item.get('site'):
            details.append(item['site'])
        if item.get('word_count'):
            details.append(f"{item['word_count']} words")
        suffix = f" ({', '.join(details)})" if details else ""
        click.echo(f"  {i}. {title}{suffix}")


@click.group()
@click.version_option(version=__version__, prog_name="queue2epub")
def main():
    """queue2epub - Export queued web articles as EPUB books."""
    pass


main.add_command(export)
main.add_command(inline)
main.add_command(list_items)


if __name__ == '__main__':
    main()
