"""Run the API with ``python -m agrigenius``."""

import uvicorn

from agrigenius.core.config import settings

if __name__ == "__main__":
    uvicorn.run("agrigenius:app", host=settings.host, port=settings.port, reload=False)
