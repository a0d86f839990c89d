"""Wire messages, conversion, retry and the client driver for remote scanning."""