import os

import uvicorn

from datasource.app import app

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=os.getenv("DATASOURCE_HOST", "0.0.0.0"),
        port=int(os.getenv("DATASOURCE_PORT", "8000")),
    )
