from dotenv import load_dotenv

# Load environment variables from .env file so LOG_LEVEL and friends are
# visible to modules that read os.environ directly
load_dotenv()
