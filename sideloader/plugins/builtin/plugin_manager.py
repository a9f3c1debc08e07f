from sideloader.plugins.base import BasePlugin


class PluginManagerPlugin(BasePlugin):
    name = "UnofficialPluginManager"
    description = "Allows you to easily install and manage custom plugins"
    version = "1.0.0"
    author = "sideloader"
