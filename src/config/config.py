import logging
import os

from core.errors import ConfigError

logger = logging.getLogger(__name__)


class Config:
    """
    Configuration class for environment variables and default settings.
    """

    # Must be reachable from the host running the sink writes
    INFLUX_HOST = os.environ.get("AP_INFLUX_HOST")
    INFLUX_TOKEN = os.environ.get("AP_INFLUX_TOKEN", "")
    INFLUX_ORG = os.environ.get("AP_INFLUX_ORG", "asyncping")
    INFLUX_BUCKET = os.environ.get("AP_INFLUX_BUCKET", "async_ping")
    SINK_TYPE = os.environ.get("AP_SINK_TYPE", "influx")

    OPENFAAS_GATEWAY = os.environ.get("AP_OPENFAAS_GATEWAY")
    FUNCTION_NAME = os.environ.get("AP_FUNCTION_NAME", "echoit")
    DISPATCH_TIMEOUT_SECONDS = float(os.environ.get("AP_DISPATCH_TIMEOUT", "10"))

    # Not localhost: the gateway's queue worker has to reach it
    CALLBACK_URL = os.environ.get("AP_CALLBACK_URL")
    CALLBACK_PATH = os.environ.get("AP_CALLBACK_PATH", "/webhook")
    PORT = int(os.environ.get("AP_PORT", "3008"))

    TIMEOUT_MS = int(os.environ.get("AP_TIMEOUT", "1000"))
    INTERVAL_MS = int(os.environ.get("AP_INTERVAL", str(60 * 1000)))

    @classmethod
    def influx_url(cls):
        """
        Return the InfluxDB base URL, accepting either a bare host or a full URL.
        """
        host = cls.INFLUX_HOST
        if not host:
            return None
        if "://" in host:
            return host.rstrip("/")
        if ":" in host:
            return f"http://{host}"
        return f"http://{host}:8086"

    @classmethod
    def missing_required(cls):
        """
        List the environment variables that must be set but are not.

        Returns:
            list[str]: Names of the missing variables, empty when complete.
        """
        required = {
            "AP_OPENFAAS_GATEWAY": cls.OPENFAAS_GATEWAY,
            "AP_CALLBACK_URL": cls.CALLBACK_URL,
        }
        if cls.SINK_TYPE.lower() == "influx":
            required["AP_INFLUX_HOST"] = cls.INFLUX_HOST
        return [name for name, value in required.items() if not value]

    @classmethod
    def validate(cls):
        """
        Check the configuration before the service starts.

        Raises:
            ConfigError: If a required value is missing or a duration is not positive.
        """
        missing = cls.missing_required()
        if missing:
            raise ConfigError(
                f"You must set these environment variables: {', '.join(missing)}"
            )
        if cls.TIMEOUT_MS <= 0 or cls.INTERVAL_MS <= 0:
            raise ConfigError(
                f"AP_TIMEOUT ({cls.TIMEOUT_MS}) and AP_INTERVAL ({cls.INTERVAL_MS}) must be positive"
            )
        if cls.TIMEOUT_MS >= cls.INTERVAL_MS:
            logger.warning(
                f"Probe timeout {cls.TIMEOUT_MS}ms is not shorter than the interval {cls.INTERVAL_MS}ms"
            )
