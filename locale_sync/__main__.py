from locale_sync.main import run

run()
