from mangum import Mangum

from lentos.main import app

# lifespan runs the migrations on cold start
handler = Mangum(app, lifespan="auto")
