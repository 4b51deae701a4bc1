VERSION = "0.3.1"
APP_NAME = "wordloop"
