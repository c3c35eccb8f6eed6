import uvicorn
from config import ApplicationConfig
from src.api.app import create_app

app = create_app(ApplicationConfig)

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=ApplicationConfig.API_HOST,
        port=ApplicationConfig.API_PORT,
        log_level=ApplicationConfig.LOG_LEVEL.lower(),
        # Sessions record the client address; trust X-Forwarded-For from the proxy
        proxy_headers=True,
        forwarded_allow_ips=ApplicationConfig.FORWARDED_ALLOW_IPS,
    )
