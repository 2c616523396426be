"""
Lance le service checkout avec uvicorn: `python -m storefront`.

Environnement:
- HOST / PORT: adresse d'écoute (0.0.0.0:8000 par défaut)
- UVICORN_RELOAD: "1"/"true"/"yes" pour le reload en dev
- LOG_LEVEL: niveau des logs (les loggers storefront.* héritent de la config uvicorn)
"""
import os
import uvicorn


def main() -> None:
    uvicorn.run(
        "storefront.asgi:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        reload=os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes"),
        log_level=os.environ.get("LOG_LEVEL", "info"),
    )


if __name__ == "__main__":
    main()
