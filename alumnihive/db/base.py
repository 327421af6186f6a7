from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Models register themselves by importing Base from here; alumnihive.db.models
# imports every model so metadata is complete before create_all/autogenerate.
