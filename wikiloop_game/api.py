"""
HTTP surface of the tile service.

A single GET endpoint selects its behaviour through the ``action`` query
parameter. Responses are JSON, or JSONP when a ``callback`` parameter is given,
so the distributed game page can load them through a script tag.

Usage:
    python -m wikiloop_game.api --game place_of_birth --db data/wikiloop_game.sqlite
"""

import argparse
import json
import logging
import threading

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from . import config
from .games import GAMES
from .service import create_service

logger = logging.getLogger(__name__)


def render(payload, callback=None):
    """Return a JSON response, wrapped in callback(...) when callback is a safe JS name."""
    if callback and config.JSONP_CALLBACK_PATTERN.fullmatch(callback):
        body = f"/**/ typeof {callback} === 'function' && {callback}({json.dumps(payload)});"
        return Response(content=body, media_type="application/javascript")
    if callback:
        logger.warning("[!] Ignoring unsafe JSONP callback %r.", callback)
    return JSONResponse(payload)


def create_app(service=None):
    app = FastAPI(
        title="WikiLoop Wikidata Game",
        description="Tile server for the Wikidata distributed game",
        version="1.0.0",
    )
    lock = threading.Lock()
    holder = {"service": service}

    def get_service():
        # Built on first use so importing the module never touches the database.
        with lock:
            if holder["service"] is None:
                holder["service"] = create_service()
            return holder["service"]

    @app.get("/")
    def game_endpoint(request: Request):
        params = dict(request.query_params)
        payload = get_service().handle(params)
        return render(payload, params.get("callback"))

    return app


app = create_app()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Serve tiles for a Wikidata distributed game.")
    parser.add_argument("--game", choices=sorted(GAMES), default=config.GAME, help="Game to serve.")
    parser.add_argument("--db", default=str(config.DB_PATH), help="SQLite database with the snapshot tables.")
    parser.add_argument("--dataset", default=config.DATASET or None, help="Dataset name prefix of the tables.")
    parser.add_argument("--host", default=config.HOST)
    parser.add_argument("--port", type=int, default=config.PORT)
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    service = create_service(args.game, db_path=args.db, dataset=args.dataset)
    logger.info("[*] Serving %s from %s on %s:%s.", service.game.key, args.db, args.host, args.port)
    uvicorn.run(create_app(service), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
