"""Example standalone ASGI service.

Run with:
    APPLOGS_DATA_DIR=./data uvicorn examples.asgi_example:app

Without APPLOGS_DATA_DIR everything is kept in memory. Set
APPLOGS_SELF_APP_ID to store the service's own logs under that app.

Try:
    curl -X POST localhost:8000/apps -d '{"app_id": "shop", "name": "Shop"}'
    curl -X POST localhost:8000/logs -H 'X-App-ID: shop' \\
        -d '{"level": "INFO", "message": "hello"}'
    curl localhost:8000/logs -H 'X-App-ID: shop'
    curl localhost:8000/stats/shop?days=3
"""

import logging

from applogs import create_app

logging.basicConfig(level=logging.INFO)

app = create_app()
