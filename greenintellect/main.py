import asyncio

import uvicorn

from greenintellect.analysis.factory import AnalysisClientFactory
from greenintellect.analysis.prompt_builder import PromptBuilder
from greenintellect.api.app import create_app
from greenintellect.config.settings import Settings
from greenintellect.database.connection import close_pool, init_pool
from greenintellect.database.repositories.pdf_uploads_repository import PdfUploadsRepository
from greenintellect.logging.logger import Log
from greenintellect.review.service import UploadReviewService
from greenintellect.worker.job_runner import AnalysisJobRunner
from greenintellect.worker.worker import Worker


async def serve(settings: Settings) -> None:
    """Open the pool, then run the analysis proxy and the processing worker together."""
    await init_pool(settings)
    analysis_client = AnalysisClientFactory.create(settings)
    review_service = UploadReviewService(
        PdfUploadsRepository(),
        refresh_delay_seconds=settings.review_refresh_delay_seconds,
    )
    try:
        job_runner = AnalysisJobRunner(review_service, analysis_client, PromptBuilder())
        worker = Worker(PdfUploadsRepository(), job_runner, settings)
        app = create_app(settings, analysis_client)
        server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=settings.api_host,
                port=settings.api_port,
                log_level=settings.log_level.lower(),
            )
        )
        worker_task = asyncio.create_task(worker.run())
        try:
            await server.serve()
        finally:
            worker_task.cancel()
            await asyncio.gather(worker_task, return_exceptions=True)
    finally:
        await review_service.close()
        await analysis_client.aclose()
        await close_pool()


def main() -> None:
    """Entry point: load settings -> configure logging -> serve."""
    settings = Settings()
    Log.configure(settings.log_level)
    Log.info(f"Starting GreenIntellect backend ({settings.app_env})")
    asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
