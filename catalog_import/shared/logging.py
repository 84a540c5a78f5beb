"""구조화된 로깅 유틸리티"""
import logging
import logging.config
from typing import Optional
import sys

from catalog_import.shared.config import get_settings


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """로거 인스턴스 반환"""
    settings = get_settings()

    if not level:
        level = settings.log_level.upper()

    log_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': settings.log_format
            }
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'stream': sys.stdout
            }
        },
        'loggers': {
            name: {
                'handlers': ['console'],
                'level': level,
                'propagate': False
            }
        }
    }

    logging.config.dictConfig(log_config)
    return logging.getLogger(name)


def log_import_item(
    logger: logging.Logger,
    action: str,
    supplier_id: str,
    product_id: str,
    details: Optional[dict] = None
):
    """상품 가져오기 단건 로그"""
    log_data = {
        'action': action,
        'supplier_id': supplier_id,
        'supplier_product_id': product_id,
    }

    if details:
        log_data.update(details)

    logger.info(f"Product import: {action} {product_id}", extra=log_data)
