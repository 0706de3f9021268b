import uvicorn

from tally.core.config import settings

if __name__ == "__main__":
    uvicorn.run("tally.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
